"""
Error types raised by the pwm container and store.

Every error derives from PwmError so callers can catch the whole family.
Filesystem failures are not wrapped: they surface as the builtin OSError.
"""

from pathlib import Path
from typing import Union


class PwmError(Exception):
    """Base class for pwm errors."""


class AlreadyExistsError(PwmError):
    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__(f"Could not create container: {path} already exists.")
        self.path = path


class DuplicateAccountError(PwmError):
    def __init__(self, account: str) -> None:
        super().__init__(f"Account `{account}` already exists in the container.")
        self.account = account


class AccountNotFoundError(PwmError):
    def __init__(self, account: str) -> None:
        super().__init__(f"No entry found for account `{account}`.")
        self.account = account


class DecryptionFailedError(PwmError):
    """Authentication failed. Wrong password, corruption and tampering look the same."""

    def __init__(self) -> None:
        super().__init__("Authentication failed: wrong password or corrupted container.")


class MalformedDataError(PwmError):
    """Plaintext decrypted but does not describe a password store."""


class SerializationError(PwmError):
    pass


class EncryptionError(PwmError):
    pass


class InvalidContainerPathError(PwmError):
    def __init__(self, path: Union[str, Path], extension: str) -> None:
        super().__init__(f"Container file must end with {extension}: {path}")
        self.path = path


class InvalidPayloadError(PwmError):
    pass


__all__ = [
    "PwmError",
    "AlreadyExistsError",
    "DuplicateAccountError",
    "AccountNotFoundError",
    "DecryptionFailedError",
    "MalformedDataError",
    "SerializationError",
    "EncryptionError",
    "InvalidContainerPathError",
    "InvalidPayloadError",
]
