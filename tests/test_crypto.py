"""Tests for AES-256-GCM secret encryption."""

import os

import pytest
from cryptography.exceptions import InvalidTag

from pal.crypto import decrypt_value, encrypt_value, generate_master_key


class TestEncryption:
    """Round-trip, entry layout and tamper handling."""

    def test_encrypt_decrypt_roundtrip(self):
        """Encrypt a value then decrypt it."""
        key = os.urandom(32)
        entry = encrypt_value("sk-live-abc123", key)
        assert decrypt_value(entry, key) == "sk-live-abc123"

    def test_unicode_roundtrip(self):
        key = os.urandom(32)
        entry = encrypt_value("clé-秘密-🔑", key)
        assert decrypt_value(entry, key) == "clé-秘密-🔑"

    def test_entry_field_sizes(self):
        """iv is 12 bytes, tag is 16 bytes, ciphertext matches plaintext length."""
        entry = encrypt_value("secret", os.urandom(32))
        assert len(bytes.fromhex(entry.iv)) == 12
        assert len(bytes.fromhex(entry.auth_tag)) == 16
        assert len(bytes.fromhex(entry.ciphertext)) == len("secret")

    def test_same_value_different_iv(self):
        """Encrypting the same value twice uses a fresh nonce each time."""
        key = os.urandom(32)
        a = encrypt_value("secret", key)
        b = encrypt_value("secret", key)
        assert a.iv != b.iv
        assert a.ciphertext != b.ciphertext

    def test_decrypt_wrong_key_raises(self):
        entry = encrypt_value("secret", os.urandom(32))
        with pytest.raises(InvalidTag):
            decrypt_value(entry, os.urandom(32))

    def test_decrypt_tampered_ciphertext_raises(self):
        key = os.urandom(32)
        entry = encrypt_value("secret", key)
        data = bytearray(bytes.fromhex(entry.ciphertext))
        data[0] ^= 0xFF
        entry.ciphertext = bytes(data).hex()
        with pytest.raises(InvalidTag):
            decrypt_value(entry, key)

    def test_decrypt_tampered_tag_raises(self):
        key = os.urandom(32)
        entry = encrypt_value("secret", key)
        tag = bytearray(bytes.fromhex(entry.auth_tag))
        tag[-1] ^= 0x01
        entry.auth_tag = bytes(tag).hex()
        with pytest.raises(InvalidTag):
            decrypt_value(entry, key)

    def test_decrypt_malformed_hex_raises_value_error(self):
        key = os.urandom(32)
        entry = encrypt_value("secret", key)
        entry.iv = "zz" * 12
        with pytest.raises(ValueError):
            decrypt_value(entry, key)

    def test_decrypt_short_tag_raises_value_error(self):
        key = os.urandom(32)
        entry = encrypt_value("secret", key)
        entry.auth_tag = entry.auth_tag[:8]
        with pytest.raises(ValueError):
            decrypt_value(entry, key)

    def test_generate_master_key(self):
        a = generate_master_key()
        b = generate_master_key()
        assert len(a) == 32
        assert a != b
