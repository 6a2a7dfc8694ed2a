import argparse
import json
from typing import Optional, Sequence, Tuple

from pwm_config import check_container_path, configure_logging, container_path_for, resolve_password
from pwm_container import add_entry, create_empty, get_all_entries, get_entry
from pwm_errors import InvalidPayloadError, PwmError
from pwm_store import Entry


def display_entry(account: str, entry: Entry) -> None:
    print(f"`{account}`:\n  {entry.username}: {entry.password}")


def parse_payload(raw: str) -> Tuple[str, Entry]:
    """Parse an add-json payload into ``(account, entry)``."""
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise InvalidPayloadError(f"Payload is not valid JSON: {exc}") from exc
    keys = ("account", "username", "password")
    if not isinstance(payload, dict) or not all(isinstance(payload.get(k), str) for k in keys):
        raise InvalidPayloadError("Payload must contain account, username and password keys.")
    return payload["account"], Entry(username=payload["username"], password=payload["password"])


def cmd_init(args: argparse.Namespace) -> None:
    path = container_path_for(args.name)
    password = resolve_password(args.password, confirm=True)
    create_empty(path, password)
    print(f"Container created at {path}")


def cmd_add(args: argparse.Namespace) -> None:
    path = check_container_path(args.db_file)
    password = resolve_password(args.password)
    add_entry(path, password, args.account, Entry(username=args.username, password=args.entry_password))


def cmd_add_json(args: argparse.Namespace) -> None:
    path = check_container_path(args.db_file)
    account, entry = parse_payload(args.payload)
    password = resolve_password(args.password)
    add_entry(path, password, account, entry)


def cmd_get(args: argparse.Namespace) -> None:
    path = check_container_path(args.db_file)
    password = resolve_password(args.password)
    if args.account is not None:
        display_entry(args.account, get_entry(path, password, args.account))
        return
    for account, entry in sorted(get_all_entries(path, password), key=lambda item: item[0]):
        display_entry(account, entry)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pwm",
        description="Encrypted file-based password store.",
        epilog="Writes keep a FILE.pwm.lock file next to each container; it is expected and safe to leave.",
    )
    parser.add_argument("-p", "--password", help="Container password (falls back to $PWM_PASS, then a prompt)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    init = sub.add_parser("init", help="Create an empty NAME.pwm in the current directory")
    init.add_argument("name", help="Container name, without extension")
    init.set_defaults(func=cmd_init)

    add = sub.add_parser("add", help="Add an entry to a container")
    add.add_argument("db_file", help="Path to the .pwm file")
    add.add_argument("-a", "--account", required=True, help="Account name, e.g. 'github.com'")
    add.add_argument("-u", "--username", required=True, help="Username for the account")
    add.add_argument("-p", "--pass", dest="entry_password", required=True, help="Password for the account")
    add.set_defaults(func=cmd_add)

    add_json = sub.add_parser(
        "add-json",
        help="Add an entry from a JSON payload with account, username and password keys",
    )
    add_json.add_argument("db_file", help="Path to the .pwm file")
    add_json.add_argument("-p", "--payload", required=True, help="JSON object")
    add_json.set_defaults(func=cmd_add_json)

    get = sub.add_parser("get", help="Print one entry, or every entry when ACCOUNT is omitted")
    get.add_argument("db_file", help="Path to the .pwm file")
    get.add_argument("account", nargs="?", help="Account to print")
    get.set_defaults(func=cmd_get)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        args.func(args)
    except PwmError as exc:
        raise SystemExit(str(exc))
    except OSError as exc:
        raise SystemExit(f"I/O error: {exc}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
