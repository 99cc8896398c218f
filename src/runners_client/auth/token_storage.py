"""Secure key-value storage for session secrets.

Holds the persisted access token and, in "persisted" credential mode, the
refresh token. Backends:

KeychainStorage
    The OS credential store through keyring (macOS Keychain, Windows
    Credential Locker, Secret Service on Linux). One keyring entry per key
    under the "runners-client" service.
EncryptedFileStorage
    <config dir>/<key>.enc, Fernet-encrypted with a key derived from this
    machine's identity. Picked by "auto" when no usable keyring exists.
MemoryStorage
    A dict. Tests and throwaway sessions.

Nothing is ever written to disk in plaintext.
"""

from __future__ import annotations

__all__ = [
    "EncryptedFileStorage",
    "KeychainStorage",
    "MemoryStorage",
    "SecretStorage",
    "create_secret_storage",
    "get_storage_info",
    "is_keyring_available",
    "machine_identity",
]

import base64
import hashlib
import platform
import re
import socket
import subprocess
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import keyring
from cryptography.fernet import Fernet
from keyring.backends.fail import Keyring as FailKeyring
from keyring.errors import PasswordDeleteError

from runners_client.constants import APP_NAME, PROTECTED_CONFIG_DIR
from runners_client.exceptions import StorageError
from runners_client.telemetry.system.system_logger import get_system_logger
from runners_client.utils.files import write_private_file

KEYRING_SERVICE = APP_NAME

_KEY_PATTERN = re.compile(r"^[a-z0-9_]+$")

# Changing either invalidates every existing .enc file
_KDF_SALT = b"runners-client/secret-storage/1"
_KDF_ROUNDS = 100_000


def _check_key(key: str) -> str:
    if not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid secret key {key!r} (expected [a-z0-9_]+)")
    return key


def _read_first(*paths: str) -> str | None:
    for candidate in paths:
        try:
            value = Path(candidate).read_text().strip()
        except OSError:
            continue
        if value:
            return value
    return None


def _macos_hardware_uuid() -> str | None:
    try:
        out = subprocess.run(
            ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
            capture_output=True,
            text=True,
            timeout=5,
        ).stdout
    except (subprocess.SubprocessError, OSError):
        return None
    match = re.search(r'"IOPlatformUUID"\s*=\s*"([^"]+)"', out)
    return match.group(1) if match else None


def machine_identity() -> str:
    """Stable identifier for this host: hardware UUID, machine-id or hostname."""
    system = platform.system()
    identity = None
    if system == "Darwin":
        identity = _macos_hardware_uuid()
    elif system == "Linux":
        identity = _read_first("/etc/machine-id", "/var/lib/dbus/machine-id")
    return identity or socket.gethostname()


class SecretStorage(ABC):
    """Abstract base class for secret storage backends."""

    name: str = "abstract"

    @abstractmethod
    def save(self, key: str, value: str) -> None:
        """Store a secret.

        Raises:
            StorageError: If save fails.
        """

    @abstractmethod
    def load(self, key: str) -> str | None:
        """Load a secret.

        Returns:
            The stored value, None if nothing is stored under key.

        Raises:
            StorageError: If load fails (corruption, decryption error).
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a secret. Deleting a missing key is not an error.

        Raises:
            StorageError: If delete fails.
        """

    def exists(self, key: str) -> bool:
        """Check if a secret is stored under key."""
        try:
            return self.load(key) is not None
        except StorageError:
            return False


class KeychainStorage(SecretStorage):
    """Secrets in the OS keychain: service=KEYRING_SERVICE, username=key."""

    name = "keychain"

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self._service = service

    def save(self, key: str, value: str) -> None:
        username = _check_key(key)
        try:
            keyring.set_password(self._service, username, value)
        except Exception as e:
            raise StorageError(f"Failed to save {key} to keychain: {e}") from e

    def load(self, key: str) -> str | None:
        username = _check_key(key)
        try:
            return keyring.get_password(self._service, username)
        except Exception as e:
            raise StorageError(f"Failed to access keychain: {e}") from e

    def delete(self, key: str) -> None:
        username = _check_key(key)
        try:
            keyring.delete_password(self._service, username)
        except PasswordDeleteError:
            return
        except Exception as e:
            raise StorageError(f"Failed to delete {key} from keychain: {e}") from e


class EncryptedFileStorage(SecretStorage):
    """Secrets as Fernet-encrypted files, one <key>.enc per secret.

    The Fernet key is PBKDF2 over the machine identity and hostname, so the
    files are useless when copied to another machine. "auto" picks this
    only when no keyring backend works.
    """

    name = "encrypted_file"

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory or Path(PROTECTED_CONFIG_DIR)
        self._fernet: Fernet | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{_check_key(key)}.enc"

    def _cipher(self) -> Fernet:
        if self._fernet is None:
            material = f"{machine_identity()}|{socket.gethostname()}|{APP_NAME}".encode()
            raw = hashlib.pbkdf2_hmac("sha256", material, _KDF_SALT, _KDF_ROUNDS, dklen=32)
            self._fernet = Fernet(base64.urlsafe_b64encode(raw))
        return self._fernet

    def save(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            write_private_file(path, self._cipher().encrypt(value.encode()))
        except Exception as e:
            raise StorageError(f"Failed to save encrypted {key}: {e}") from e

    def load(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            return self._cipher().decrypt(path.read_bytes()).decode()
        except Exception as e:
            raise StorageError(
                f"Failed to decrypt {path.name} (may be corrupted or key changed): {e}"
            ) from e

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete encrypted {key}: {e}") from e

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()


class MemoryStorage(SecretStorage):
    """Process-local storage. Secrets are lost when the process exits."""

    name = "memory"

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def save(self, key: str, value: str) -> None:
        with self._lock:
            self._data[_check_key(key)] = value

    def load(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(_check_key(key))

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(_check_key(key), None)


def is_keyring_available(probe_service: str = f"{APP_NAME}-probe") -> bool:
    """True when the active keyring backend round-trips a throwaway secret.

    Any failure (no backend, a locked or missing DBus session, permission
    errors) counts as unavailable and is logged at DEBUG.
    """
    if isinstance(keyring.get_keyring(), FailKeyring):
        get_system_logger().debug(
            {"event": "keyring_unavailable", "reason": "no_backend", "message": "No usable keyring backend"}
        )
        return False

    username = "probe"
    try:
        keyring.set_password(probe_service, username, "ok")
        round_trip = keyring.get_password(probe_service, username)
        keyring.delete_password(probe_service, username)
    except Exception as e:
        get_system_logger().debug(
            {
                "event": "keyring_unavailable",
                "reason": "probe_failed",
                "message": f"Keyring probe failed: {e}",
                "error_type": type(e).__name__,
            }
        )
        return False
    return round_trip == "ok"


def create_secret_storage(kind: str = "auto") -> SecretStorage:
    """Create a secret storage backend.

    Args:
        kind: "auto" (keychain if available, else encrypted file),
            "keychain", "encrypted_file", or "memory".

    Returns:
        SecretStorage instance.
    """
    if kind == "memory":
        return MemoryStorage()
    if kind == "keychain":
        return KeychainStorage()
    if kind == "encrypted_file":
        return EncryptedFileStorage()
    if kind == "auto":
        if is_keyring_available():
            return KeychainStorage()
        return EncryptedFileStorage()
    raise ValueError(f"Unknown storage backend: {kind!r}")


def get_storage_info(storage: SecretStorage) -> dict[str, str]:
    """Describe a storage backend for status display.

    Returns:
        Dict with 'backend' plus a backend-specific location key.
    """
    if isinstance(storage, KeychainStorage):
        return {
            "backend": storage.name,
            "keyring_backend": type(keyring.get_keyring()).__name__,
            "service": KEYRING_SERVICE,
        }
    if isinstance(storage, EncryptedFileStorage):
        return {"backend": storage.name, "location": str(storage.directory)}
    return {"backend": storage.name}
