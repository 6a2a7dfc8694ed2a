"""
Advisory exclusive lock guarding read-modify-write cycles on a container.

The lock lives in a sidecar ``<container>.lock`` file rather than on the
container itself, because writes replace the container's inode. The lock
file is created on first use and left in place afterwards, also when the
operation fails.
"""

import contextlib
import logging
import os
from typing import Iterator

if os.name == "nt":  # pragma: no cover
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"


def lock_path_for(path: str) -> str:
    return path + LOCK_SUFFIX


def _acquire(fd: int) -> None:
    if os.name == "nt":  # pragma: no cover
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_EX)


def _release(fd: int) -> None:
    if os.name == "nt":  # pragma: no cover
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_UN)


@contextlib.contextmanager
def container_lock(path: str) -> Iterator[None]:
    """Hold an exclusive lock for ``path`` until the block exits, however it exits."""
    lock_path = lock_path_for(path)
    fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o600)
    try:
        _acquire(fd)
        logger.debug("Acquired lock %s", lock_path)
        try:
            yield
        finally:
            _release(fd)
            logger.debug("Released lock %s", lock_path)
    finally:
        os.close(fd)
