"""
In-memory password store: account name -> (username, password).
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from pwm_errors import DuplicateAccountError, MalformedDataError


@dataclass(frozen=True)
class Entry:
    username: str
    password: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "Entry":
        if not isinstance(data, dict):
            raise MalformedDataError("Entry must be an object")
        username = data.get("username")
        password = data.get("password")
        if not isinstance(username, str) or not isinstance(password, str):
            raise MalformedDataError("Entry requires string username and password")
        return cls(username=username, password=password)


class PasswordStore:
    """Unordered mapping of account names to entries. Accounts are never overwritten."""

    def __init__(self) -> None:
        self._data: Dict[str, Entry] = {}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Tuple[str, str]]) -> "PasswordStore":
        """Build a store from ``{account: (username, password)}``."""
        store = cls()
        for account, (username, password) in mapping.items():
            store.add_entry(account, Entry(username=username, password=password))
        return store

    def add_entry(self, account: str, entry: Entry) -> None:
        if account in self._data:
            raise DuplicateAccountError(account)
        self._data[account] = entry

    def get_entry(self, account: str) -> Optional[Entry]:
        return self._data.get(account)

    def entries(self) -> List[Tuple[str, Entry]]:
        return list(self._data.items())

    def accounts(self) -> List[str]:
        return sorted(self._data)

    def is_empty(self) -> bool:
        return not self._data

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, account: object) -> bool:
        return account in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PasswordStore):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        # never show secrets
        return f"PasswordStore(accounts={self.accounts()!r})"

    # --- serialized shape ---------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        data = {account: entry.to_dict() for account, entry in self._data.items()}
        return {"store": {"data": data}}

    @classmethod
    def from_dict(cls, payload: Any) -> "PasswordStore":
        if not isinstance(payload, dict) or not isinstance(payload.get("store"), dict):
            raise MalformedDataError("Missing 'store' object")
        data = payload["store"].get("data")
        if not isinstance(data, dict):
            raise MalformedDataError("Missing 'store.data' mapping")
        store = cls()
        for account, raw in data.items():
            store._data[account] = Entry.from_dict(raw)
        return store


__all__ = ["Entry", "PasswordStore"]
