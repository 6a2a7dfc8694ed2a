#!/usr/bin/env python
"""
Textual TUI for browsing .pwm containers and adding entries to them.
Pattern follows a list screen plus detail/add screens. Every write goes
through pwm_container, so it is locked and atomic like the CLI.
"""

from __future__ import annotations

import argparse
import logging
import secrets
from pathlib import Path
from typing import List, Optional, Tuple
try:
    import pyperclip
except ImportError:
    pyperclip = None

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, ListItem, ListView, Static

from pwm_config import check_container_path, configure_logging, resolve_password
from pwm_container import add_entry, read_store
from pwm_errors import AccountNotFoundError, PwmError
from pwm_store import Entry, PasswordStore

logger = logging.getLogger(__name__)

MASKED = "••••••••"

# --- helpers ---------------------------------------------------------------


def generate_password(length: int = 20) -> str:
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$&*-_=+"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def copy_to_clipboard(value: str) -> bool:
    if pyperclip is None:
        return False
    try:
        pyperclip.copy(value)
    except pyperclip.PyperclipException:
        logger.warning("Clipboard is not available")
        return False
    return True


# ---------------------------------------------------------------------------
# Session over an unlocked container
# ---------------------------------------------------------------------------


class ContainerSession:
    """Decrypted view of a .pwm file; reloaded from disk after every write."""

    def __init__(self, path: Path, password: str) -> None:
        self.path = path
        self.password = password
        self._store = PasswordStore()
        self.load()

    def load(self) -> None:
        self._store = read_store(self.path, self.password)

    def accounts(self) -> List[str]:
        return self._store.accounts()

    def get(self, account: str) -> Entry:
        entry = self._store.get_entry(account)
        if entry is None:
            raise AccountNotFoundError(account)
        return entry

    def add(self, account: str, entry: Entry) -> None:
        add_entry(self.path, self.password, account, entry)
        self.load()

    def wipe(self) -> None:
        # best-effort: drop references to secrets
        self.password = ""
        self._store = PasswordStore()


# ---------------------------------------------------------------------------
# List item widget
# ---------------------------------------------------------------------------


class AccountItem(ListItem):
    def __init__(self, account: str, entry: Entry) -> None:
        user = f" ({entry.username})" if entry.username else ""
        super().__init__(Label(f"{account}{user}", markup=False))
        self.account = account


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------


class AccountListScreen(Screen):
    """Main screen: accounts in the container."""

    BINDINGS = [
        ("q", "app.quit", "Quit"),
        ("a", "add_entry", "Add"),
        ("c", "copy_password", "Copy password"),
        ("r", "reload", "Reload"),
    ]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Vertical(
            Label("Accounts (Enter to view, 'a' to add, 'c' to copy password)"),
            ListView(id="account-list"),
        )
        yield Footer()

    @property
    def session(self) -> ContainerSession:
        return self.app.session  # type: ignore[attr-defined]

    def on_mount(self) -> None:
        self.refresh_list()

    def refresh_list(self) -> None:
        lv = self.query_one("#account-list", ListView)
        lv.clear()
        for account in self.session.accounts():
            lv.append(AccountItem(account, self.session.get(account)))

    def _get_highlighted_item(self) -> Optional[AccountItem]:
        lv = self.query_one("#account-list", ListView)
        item = lv.highlighted_child
        return item if isinstance(item, AccountItem) else None

    # --- actions -----------------------------------------------------------
    def action_add_entry(self) -> None:
        def callback(result: Optional[Tuple[str, Entry]]) -> None:
            if result is None:
                return
            account, entry = result
            try:
                self.session.add(account, entry)
            except (PwmError, OSError) as exc:
                self.notify(str(exc), severity="error")
                return
            self.notify(f"Added {account}")
            self.refresh_list()

        self.app.push_screen(AddEntryScreen(), callback)

    def action_copy_password(self) -> None:
        item = self._get_highlighted_item()
        if item is None:
            return
        if copy_to_clipboard(self.session.get(item.account).password):
            self.notify("Password copied")

    def action_reload(self) -> None:
        try:
            self.session.load()
        except (PwmError, OSError) as exc:
            self.notify(str(exc), severity="error")
            return
        self.refresh_list()

    @on(ListView.Selected, "#account-list")
    def handle_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if not isinstance(item, AccountItem):
            return
        self.app.push_screen(EntryDetailScreen(item.account, self.session.get(item.account)))


class EntryDetailScreen(Screen):
    """Read-only view of one entry. The password stays masked until toggled."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Back"),
        ("s", "toggle_password", "Show/Hide"),
    ]

    def __init__(self, account: str, entry: Entry) -> None:
        super().__init__()
        self.account = account
        self.entry = entry
        self.revealed = False

    def compose(self) -> ComposeResult:
        yield Header()
        copy_disabled = pyperclip is None
        yield Vertical(
            Label(f"Account: {self.account}", markup=False),
            Static(f"Username: {self.entry.username}", id="username-value", markup=False),
            Static(f"Password: {MASKED}", id="password-value", markup=False),
            Horizontal(
                Button("Copy Username", id="copyuser", disabled=copy_disabled),
                Button("Copy Password", id="copypass", disabled=copy_disabled, variant="primary"),
                Button("Back", id="back"),
            ),
            id="detail-layout",
        )
        yield Footer()

    def action_toggle_password(self) -> None:
        self.revealed = not self.revealed
        shown = self.entry.password if self.revealed else MASKED
        self.query_one("#password-value", Static).update(f"Password: {shown}")

    @on(Button.Pressed, "#copyuser")
    def copy_username(self) -> None:
        if copy_to_clipboard(self.entry.username):
            self.notify("Username copied")

    @on(Button.Pressed, "#copypass")
    def copy_password(self) -> None:
        if copy_to_clipboard(self.entry.password):
            self.notify("Password copied")

    @on(Button.Pressed, "#back")
    def back(self) -> None:
        self.app.pop_screen()


class PasswordInput(Input):
    """Input that unmasks while focused."""

    def on_focus(self, event) -> None:
        self.password = False

    def on_blur(self, event) -> None:
        self.password = True


class AddEntryScreen(Screen):
    """Collects a new account; dismisses with ``(account, Entry)`` or None."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Vertical(
            Label("New entry"),
            Horizontal(Label("Account:"), Input(id="account-input")),
            Horizontal(Label("Username:"), Input(id="username-input")),
            Horizontal(Label("Password:"), PasswordInput(value=generate_password(), password=True, id="password-input")),
            Horizontal(
                Button("Save", id="save", variant="success"),
                Button("Generate Password", id="genpass", variant="primary"),
                Button("Cancel", id="cancel"),
            ),
            id="edit-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#account-input", Input).focus()

    @on(Button.Pressed, "#save")
    def save(self) -> None:
        account = self.query_one("#account-input", Input).value.strip()
        if not account:
            self.notify("Account name is required", severity="warning")
            return
        entry = Entry(
            username=self.query_one("#username-input", Input).value,
            password=self.query_one("#password-input", Input).value,
        )
        self.dismiss((account, entry))

    @on(Button.Pressed, "#genpass")
    def generate_password_action(self) -> None:
        pass_input = self.query_one("#password-input", PasswordInput)
        pass_input.value = generate_password()
        pass_input.focus()

    @on(Button.Pressed, "#cancel")
    def cancel_button(self) -> None:
        self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


class PwmApp(App):
    """Holds the ContainerSession and starts on the account list."""

    CSS = """
    #account-list { height: 1fr; }
    #edit-layout, #detail-layout { padding: 1; }
    #edit-layout > *, #detail-layout > * { margin-bottom: 1; }
    """

    def __init__(self, path: Path, password: str) -> None:
        super().__init__()
        self.session = ContainerSession(path, password)

    def on_mount(self) -> None:
        self.push_screen(AccountListScreen())


def main() -> int:
    parser = argparse.ArgumentParser(description="Browse and extend a .pwm container (Textual).")
    parser.add_argument("container", type=Path, help="Path to .pwm file")
    parser.add_argument("-p", "--password", help="Container password (falls back to $PWM_PASS, then a prompt)")
    args = parser.parse_args()
    configure_logging()

    try:
        path = check_container_path(args.container)
        password = resolve_password(args.password)
        app = PwmApp(path, password)
    except (PwmError, OSError) as exc:
        print(f"Error: {exc}")
        return 1
    try:
        app.run()
    finally:
        app.session.wipe()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
