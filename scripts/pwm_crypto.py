import json
import logging
import os
import secrets
import tempfile
from dataclasses import dataclass

try:
    from Crypto.Cipher import ChaCha20_Poly1305  # pycryptodome
except ImportError as exc:  # pragma: no cover
    raise SystemExit("pycryptodome required. Install with: pip install pycryptodome") from exc

from pwm_errors import (
    DecryptionFailedError,
    EncryptionError,
    MalformedDataError,
    SerializationError,
)
from pwm_store import PasswordStore

logger = logging.getLogger(__name__)

# Binary layout:
# [NONCE(24)] [CIPHERTEXT...] [TAG(16)]
# A 24-byte nonce selects XChaCha20-Poly1305.
NONCE_SIZE = 24
TAG_SIZE = 16
KEY_SIZE = 32


@dataclass
class ContainerPayload:
    nonce: bytes
    ciphertext: bytes
    tag: bytes

    def to_bytes(self) -> bytes:
        return self.nonce + self.ciphertext + self.tag

    @classmethod
    def from_bytes(cls, blob: bytes) -> "ContainerPayload":
        # a truncated file cannot be told apart from a bad password
        if len(blob) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionFailedError()
        nonce = blob[:NONCE_SIZE]
        ciphertext = blob[NONCE_SIZE:-TAG_SIZE]
        tag = blob[-TAG_SIZE:]
        return cls(nonce=nonce, ciphertext=ciphertext, tag=tag)


def derive_key(password: str) -> bytes:
    """
    Copy the password bytes into a zeroed 32-byte key, dropping anything past byte 31.

    This is not a KDF: there is no salt and no stretching.
    """
    return password.encode("utf-8")[:KEY_SIZE].ljust(KEY_SIZE, b"\0")


def serialize_store(store: PasswordStore) -> bytes:
    try:
        return json.dumps(store.to_dict(), indent=2, sort_keys=True, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Could not encode store: {exc}") from exc


def deserialize_store(plaintext: bytes) -> PasswordStore:
    try:
        payload = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedDataError(f"Decrypted data is not valid JSON: {exc}") from exc
    return PasswordStore.from_dict(payload)


def encrypt_store(store: PasswordStore, password: str) -> bytes:
    plaintext = serialize_store(store)
    nonce = secrets.token_bytes(NONCE_SIZE)
    try:
        cipher = ChaCha20_Poly1305.new(key=derive_key(password), nonce=nonce)
        ciphertext, tag = cipher.encrypt_and_digest(plaintext)
    except (TypeError, ValueError) as exc:
        raise EncryptionError(f"Encryption failed: {exc}") from exc

    payload = ContainerPayload(nonce=nonce, ciphertext=ciphertext, tag=tag)
    return payload.to_bytes()


def decrypt_store(blob: bytes, password: str) -> PasswordStore:
    payload = ContainerPayload.from_bytes(blob)

    cipher = ChaCha20_Poly1305.new(key=derive_key(password), nonce=payload.nonce)
    try:
        plaintext = cipher.decrypt_and_verify(payload.ciphertext, payload.tag)
    except ValueError:
        logger.warning("Container authentication failed")
        raise DecryptionFailedError() from None

    return deserialize_store(plaintext)


def save_file(path: str, data: bytes) -> None:
    """Replace ``path`` with ``data`` via a temp file in the same directory."""
    dirpath = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=os.path.basename(path) + ".", suffix=".tmp", dir=dirpath)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    logger.debug("Wrote %d bytes to %s", len(data), path)


def load_file(path: str) -> bytes:
    with open(path, "rb") as f:
        data = f.read()
    logger.debug("Read %d bytes from %s", len(data), path)
    return data
