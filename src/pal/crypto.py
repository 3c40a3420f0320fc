"""Secret encryption using AES-256-GCM with the install's master key."""

import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from pal.models import SecretEntry

MASTER_KEY_SIZE = 32  # 256 bits
_NONCE_SIZE = 12  # 96 bits, recommended for AES-GCM
_TAG_SIZE = 16


def generate_master_key() -> bytes:
    """Return 32 fresh random bytes for a new master key."""
    return os.urandom(MASTER_KEY_SIZE)


def encrypt_value(plaintext: str, master_key: bytes) -> SecretEntry:
    """Encrypt a secret value under a fresh nonce.

    AESGCM appends the tag to the ciphertext; it is split off so the entry
    carries iv, authTag and ciphertext as separate hex fields.
    """
    nonce = os.urandom(_NONCE_SIZE)
    aesgcm = AESGCM(master_key)
    sealed = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    return SecretEntry(
        iv=nonce.hex(),
        auth_tag=sealed[-_TAG_SIZE:].hex(),
        ciphertext=sealed[:-_TAG_SIZE].hex(),
    )


def decrypt_value(entry: SecretEntry, master_key: bytes) -> str:
    """Decrypt a secret entry back to its plaintext string.

    Raises cryptography.exceptions.InvalidTag on tampered data or a wrong key,
    and ValueError on malformed hex or a nonce/tag of the wrong size.
    """
    nonce = bytes.fromhex(entry.iv)
    tag = bytes.fromhex(entry.auth_tag)
    ciphertext = bytes.fromhex(entry.ciphertext)
    if len(nonce) != _NONCE_SIZE:
        raise ValueError(f"Invalid nonce length: {len(nonce)}")
    if len(tag) != _TAG_SIZE:
        raise ValueError(f"Invalid auth tag length: {len(tag)}")
    aesgcm = AESGCM(master_key)
    plaintext = aesgcm.decrypt(nonce, ciphertext + tag, None)
    return plaintext.decode("utf-8")
