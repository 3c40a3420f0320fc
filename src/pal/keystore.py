"""Encrypted secret keystore.

Secrets live in a single JSON document, each one sealed with AES-256-GCM under
an install-wide master key. The master key itself is kept by the first
``MasterKeyBackend`` able to hold it (OS keyring, then an owner-only file),
and the document's ``masterKeyInKeychain`` flag records which one holds it.

The document is re-read on every call and rewritten whole on every mutation.
Mutations and master-key creation run under an advisory file lock so that two
processes cannot interleave their read-modify-write cycles or mint two
different master keys.

If the master key is lost, every stored secret becomes unrecoverable.
"""

import logging
from pathlib import Path

from cryptography.exceptions import InvalidTag
from pydantic import ValidationError

from pal.crypto import decrypt_value, encrypt_value, generate_master_key
from pal.files import FileLock, ensure_private_dir, write_private
from pal.key_backends import (
    DEFAULT_ACCOUNT_NAME,
    DEFAULT_SERVICE_NAME,
    FileKeyBackend,
    KeyringBackend,
    KeyStatus,
    MasterKeyBackend,
)
from pal.models import KEYSTORE_VERSION, KeystoreDocument, KeystoreInfo
from pal.settings import Settings

logger = logging.getLogger(__name__)

KEYSTORE_FILENAME = "keystore.json"
MASTER_KEY_FILENAME = ".master"
LOCK_FILENAME = "keystore.lock"


class KeystoreCorruptedError(ValueError):
    """The keystore document exists but cannot be parsed."""


class MasterKeyUnavailableError(RuntimeError):
    """No backend could load or persist a master key."""


class Keystore:
    """Store, read and delete secrets by caller-chosen identifier.

    Parameters
    ----------
    home:
        Directory holding the document, the lock file and (when the keyring
        is not used) the master key file. Created with mode 0o700.
    backends:
        Master-key backends in order of preference. Defaults to the OS
        keyring followed by ``<home>/.master``.
    keyring_enabled:
        Set false to skip the OS keyring in the default backend list.
    """

    def __init__(
        self,
        home: Path,
        backends: list[MasterKeyBackend] | None = None,
        keyring_enabled: bool = True,
        service_name: str = DEFAULT_SERVICE_NAME,
        account_name: str = DEFAULT_ACCOUNT_NAME,
    ) -> None:
        self.home = home
        self.path = home / KEYSTORE_FILENAME
        self.lock_path = home / LOCK_FILENAME
        if backends is None:
            backends = [
                KeyringBackend(service_name, account_name, enabled=keyring_enabled),
                FileKeyBackend(home / MASTER_KEY_FILENAME),
            ]
        self._backends = backends

    @classmethod
    def from_settings(cls, settings: Settings) -> "Keystore":
        return cls(settings.home, keyring_enabled=settings.keyring_enabled)

    # --- Document I/O ---

    def _load_document(self) -> KeystoreDocument:
        """Read the document, or an empty one if it does not exist yet.

        Raises KeystoreCorruptedError on invalid JSON, a wrong shape, or a
        schema version newer than this code understands.
        """
        ensure_private_dir(self.home)
        if not self.path.exists():
            return KeystoreDocument()
        raw = self.path.read_text(encoding="utf-8")
        try:
            document = KeystoreDocument.model_validate_json(raw)
        except ValidationError as e:
            raise KeystoreCorruptedError(f"Keystore {self.path} is malformed: {e}") from e
        if document.version > KEYSTORE_VERSION:
            raise KeystoreCorruptedError(
                f"Keystore {self.path} has unsupported version {document.version}"
            )
        return document

    def _save_document(self, document: KeystoreDocument) -> None:
        write_private(self.path, document.model_dump_json(by_alias=True, indent=2))

    def _lock(self) -> FileLock:
        return FileLock(self.lock_path)

    # --- Master key ---

    def _master_key(self, document: KeystoreDocument) -> bytes:
        """Return the master key, creating and persisting one if needed.

        Must be called with the keystore lock held. ``document`` is updated
        and saved when a new key is written or the key is found in a
        different backend than the flag records.
        """
        preferred = next(
            (b for b in self._backends if b.in_keychain == document.master_key_in_keychain),
            None,
        )
        if preferred is not None and preferred.is_available():
            outcome = preferred.try_load()
            if outcome.ok:
                return outcome.key  # type: ignore[return-value]
            if outcome.status is KeyStatus.missing and document.master_key_in_keychain:
                logger.warning(
                    "Master key missing from keyring although the keystore expects it there"
                )
            else:
                logger.debug(f"Master key not loaded from {preferred.name}: {outcome.status.value}")

        new_key = generate_master_key()
        for backend in self._backends:
            outcome = backend.try_store(new_key)
            if not outcome.ok:
                logger.debug(
                    f"Master key backend {backend.name} {outcome.status.value}: {outcome.detail}"
                )
                continue
            if outcome.status is KeyStatus.stored:
                logger.info(f"Created new master key in {backend.name} backend")
            # The flag follows wherever the key in use actually lives
            if outcome.status is KeyStatus.stored or (
                document.master_key_in_keychain != backend.in_keychain
            ):
                document.master_key_in_keychain = backend.in_keychain
                self._save_document(document)
            return outcome.key  # type: ignore[return-value]

        raise MasterKeyUnavailableError("No master key backend could provide a key")

    # --- Operations ---

    def store_secret(self, secret_id: str, value: str) -> None:
        """Encrypt ``value`` and store it under ``secret_id``, replacing any previous entry."""
        with self._lock():
            document = self._load_document()
            master_key = self._master_key(document)
            document.secrets[secret_id] = encrypt_value(value, master_key)
            self._save_document(document)

    def get_secret(self, secret_id: str) -> str | None:
        """Return the decrypted secret, or None.

        None covers both "never stored" and "stored but not decryptable"
        (wrong master key, tampered entry). Callers should treat either as
        "needs re-entry".
        """
        with self._lock():
            document = self._load_document()
            entry = document.secrets.get(secret_id)
            if entry is None:
                return None
            master_key = self._master_key(document)

        try:
            return decrypt_value(entry, master_key)
        except (InvalidTag, ValueError) as e:
            logger.warning(f"Secret '{secret_id}' could not be decrypted ({type(e).__name__})")
            return None

    def delete_secret(self, secret_id: str) -> bool:
        """Remove a secret. Returns False, without writing, if it was not stored."""
        with self._lock():
            document = self._load_document()
            if secret_id not in document.secrets:
                return False
            del document.secrets[secret_id]
            self._save_document(document)
        return True

    def list_secret_keys(self) -> list[str]:
        """All stored identifiers, in document order."""
        return list(self._load_document().secrets)

    def has_secret(self, secret_id: str) -> bool:
        """Whether an entry exists. Does not check that it decrypts."""
        return secret_id in self._load_document().secrets

    def get_keystore_info(self) -> KeystoreInfo:
        document = self._load_document()
        return KeystoreInfo(path=str(self.path), using_keychain=document.master_key_in_keychain)
