"""Master-key storage backends.

Each backend can hold the single install-wide master key. The keystore tries
them in order; outcomes come back as ``KeyOutcome`` values so a vault that is
missing, locked or broken is a normal result rather than an exception.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import keyring
from keyring.backend import KeyringBackend as _KeyringImpl
from keyring.backends import fail
from keyring.errors import NoKeyringError

from pal.crypto import MASTER_KEY_SIZE
from pal.files import write_private

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "pal-mcp"
DEFAULT_ACCOUNT_NAME = "master-key"


class KeyStatus(str, Enum):
    """Result of a backend load or store attempt."""

    found = "found"  # backend already held a key; it is returned
    stored = "stored"  # the offered key was written
    missing = "missing"  # backend works but holds no key
    unavailable = "unavailable"  # backend cannot be used on this machine
    failed = "failed"  # backend is present but the operation errored


@dataclass
class KeyOutcome:
    status: KeyStatus
    key: bytes | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.key is not None and self.status in (KeyStatus.found, KeyStatus.stored)


def _decode_key(raw: str) -> bytes:
    """Hex-decode a stored master key, checking its length."""
    key = bytes.fromhex(raw.strip())
    if len(key) != MASTER_KEY_SIZE:
        raise ValueError(f"Master key must be {MASTER_KEY_SIZE} bytes, got {len(key)}")
    return key


class MasterKeyBackend(ABC):
    """A place the master key can live."""

    name: str = ""
    # Value recorded in the document's masterKeyInKeychain flag
    in_keychain: bool = False

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can be used at all on this machine."""

    @abstractmethod
    def try_load(self) -> KeyOutcome:
        """Return the held key as ``found``, or ``missing``/``unavailable``/``failed``."""

    @abstractmethod
    def try_store(self, key: bytes) -> KeyOutcome:
        """Store ``key`` unless a key is already held.

        Returns ``stored`` with ``key``, or ``found`` with the existing key.
        """


class KeyringBackend(MasterKeyBackend):
    """OS credential vault (macOS Keychain, Secret Service, Windows Credential
    Locker) through the ``keyring`` library.

    Parameters
    ----------
    service_name, account_name:
        Identify the single vault entry holding the hex-encoded key.
    keyring_impl:
        A specific ``keyring`` backend instance. Defaults to the one
        ``keyring`` selects for the platform.
    enabled:
        When false the backend always reports ``unavailable``.
    """

    name = "keyring"
    in_keychain = True

    def __init__(
        self,
        service_name: str = DEFAULT_SERVICE_NAME,
        account_name: str = DEFAULT_ACCOUNT_NAME,
        keyring_impl: _KeyringImpl | None = None,
        enabled: bool = True,
    ) -> None:
        self._service = service_name
        self._account = account_name
        self._impl = keyring_impl
        self._enabled = enabled

    def _keyring(self) -> _KeyringImpl | None:
        if not self._enabled:
            return None
        impl = self._impl
        if impl is None:
            try:
                impl = keyring.get_keyring()
            except Exception as e:
                logger.debug(f"Keyring could not be loaded: {e}")
                return None
        if isinstance(impl, fail.Keyring):
            return None
        return impl

    def is_available(self) -> bool:
        return self._keyring() is not None

    def _read(self, impl: _KeyringImpl) -> KeyOutcome:
        try:
            stored = impl.get_password(self._service, self._account)
        except NoKeyringError as e:
            return KeyOutcome(KeyStatus.unavailable, detail=str(e))
        except Exception as e:
            logger.warning(f"Reading master key from keyring failed: {e}")
            return KeyOutcome(KeyStatus.failed, detail=str(e))
        if not stored:
            return KeyOutcome(KeyStatus.missing)
        try:
            return KeyOutcome(KeyStatus.found, key=_decode_key(stored))
        except ValueError as e:
            logger.warning(f"Keyring holds an unusable master key: {e}")
            return KeyOutcome(KeyStatus.failed, detail=str(e))

    def try_load(self) -> KeyOutcome:
        impl = self._keyring()
        if impl is None:
            return KeyOutcome(KeyStatus.unavailable, detail="no OS keyring")
        return self._read(impl)

    def try_store(self, key: bytes) -> KeyOutcome:
        impl = self._keyring()
        if impl is None:
            return KeyOutcome(KeyStatus.unavailable, detail="no OS keyring")

        existing = self._read(impl)
        if existing.status is not KeyStatus.missing:
            return existing

        try:
            impl.set_password(self._service, self._account, key.hex())
        except NoKeyringError as e:
            return KeyOutcome(KeyStatus.unavailable, detail=str(e))
        except Exception as e:
            logger.warning(f"Writing master key to keyring failed: {e}")
            return KeyOutcome(KeyStatus.failed, detail=str(e))
        return KeyOutcome(KeyStatus.stored, key=key)


class FileKeyBackend(MasterKeyBackend):
    """Hex-encoded master key in an owner-only file.

    File-system errors propagate: there is nothing to fall back to below this
    backend.
    """

    name = "file"
    in_keychain = False

    def __init__(self, path: Path) -> None:
        self.path = path

    def is_available(self) -> bool:
        return True

    def try_load(self) -> KeyOutcome:
        if not self.path.exists():
            return KeyOutcome(KeyStatus.missing)
        raw = self.path.read_text(encoding="utf-8")
        try:
            return KeyOutcome(KeyStatus.found, key=_decode_key(raw))
        except ValueError as e:
            logger.warning(f"Master key file {self.path} is unusable: {e}")
            return KeyOutcome(KeyStatus.failed, detail=str(e))

    def try_store(self, key: bytes) -> KeyOutcome:
        existing = self.try_load()
        if existing.status is KeyStatus.found:
            return existing
        if existing.status is KeyStatus.failed:
            # Never overwrite key material, even if it looks damaged
            return existing
        write_private(self.path, key.hex())
        return KeyOutcome(KeyStatus.stored, key=key)
