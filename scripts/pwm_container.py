"""
Operations on .pwm container files.

Each call is one complete cycle: read and decrypt, then for mutations modify,
re-encrypt with a fresh nonce and atomically replace the file. Mutations hold
the container lock for the whole cycle.
"""

import logging
import os
from pathlib import Path
from typing import List, Tuple, Union

from pwm_crypto import decrypt_store, encrypt_store, load_file, save_file
from pwm_errors import AccountNotFoundError, AlreadyExistsError
from pwm_lock import container_lock
from pwm_store import Entry, PasswordStore

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def create_empty(path: PathLike, password: str) -> None:
    create_container(path, password, PasswordStore())


def create_container(path: PathLike, password: str, store: PasswordStore) -> None:
    """Write ``store`` to a new container. An existing file is never overwritten."""
    path = os.fspath(path)
    with container_lock(path):
        if os.path.lexists(path):
            raise AlreadyExistsError(path)
        save_file(path, encrypt_store(store, password))
    logger.info("Created container %s with %d entries", path, len(store))


def read_store(path: PathLike, password: str) -> PasswordStore:
    return decrypt_store(load_file(os.fspath(path)), password)


def add_entry(path: PathLike, password: str, account: str, entry: Entry) -> None:
    path = os.fspath(path)
    with container_lock(path):
        store = read_store(path, password)
        store.add_entry(account, entry)
        save_file(path, encrypt_store(store, password))
    logger.info("Added account %r to %s", account, path)


def get_entry(path: PathLike, password: str, account: str) -> Entry:
    entry = read_store(path, password).get_entry(account)
    if entry is None:
        raise AccountNotFoundError(account)
    return entry


def get_all_entries(path: PathLike, password: str) -> List[Tuple[str, Entry]]:
    return read_store(path, password).entries()


__all__ = [
    "create_empty",
    "create_container",
    "read_store",
    "add_entry",
    "get_entry",
    "get_all_entries",
]
