"""Tests for login password encryption."""
import base64
import random

import pytest
from Crypto.Cipher import AES
from Crypto.Util.Padding import unpad

from uestc_client.core.crypto import (
    AES_CHARS,
    PasswordEncryptor,
    encrypt_password,
    random_string,
)
from uestc_client.core.exceptions import PasswordEncryptionError


SALT = 'rjBFAaHsNkKAhpoi'


def decrypt(ciphertext: str, salt: str, iv: str) -> str:
    cipher = AES.new(salt.encode('utf-8'), AES.MODE_CBC, iv.encode('utf-8'))
    return unpad(cipher.decrypt(base64.b64decode(ciphertext)), AES.block_size).decode('utf-8')


class TestRandomString:
    """Test suite for random_string."""

    def test_length(self):
        assert len(random_string(64)) == 64

    def test_uses_portal_alphabet(self):
        value = random_string(500, random.Random(7))
        assert set(value) <= set(AES_CHARS)

    def test_alphabet_excludes_ambiguous_characters(self):
        for char in 'ILOUVglo019':
            assert char not in AES_CHARS

    def test_seeded_rng_is_reproducible(self):
        assert random_string(16, random.Random(3)) == random_string(16, random.Random(3))


class TestEncryptPassword:
    """Test suite for encrypt_password."""

    def test_decrypts_to_prefix_and_password(self):
        """Plaintext is a 64 char prefix followed by the password."""
        ciphertext = encrypt_password('p@ssw0rd', SALT, random.Random(42))

        # The IV is the first 16 characters drawn from the rng
        expected_rng = random.Random(42)
        iv = random_string(16, expected_rng)
        prefix = random_string(64, expected_rng)

        assert decrypt(ciphertext, SALT, iv) == prefix + 'p@ssw0rd'

    def test_deterministic_with_seeded_rng(self):
        first = encrypt_password('secret', SALT, random.Random(1))
        second = encrypt_password('secret', SALT, random.Random(1))
        assert first == second

    def test_random_without_seed(self):
        assert encrypt_password('secret', SALT) != encrypt_password('secret', SALT)

    def test_ciphertext_length(self):
        """64 + 11 bytes pad to 80 bytes of ciphertext."""
        ciphertext = encrypt_password('hello world', SALT, random.Random(0))
        assert len(base64.b64decode(ciphertext)) == 80

    def test_empty_password(self):
        ciphertext = encrypt_password('', SALT, random.Random(0))
        # 64 bytes of prefix plus a full padding block
        assert len(base64.b64decode(ciphertext)) == 80

    def test_unicode_password(self):
        rng = random.Random(5)
        ciphertext = encrypt_password('密码pässword', SALT, rng)
        expected_rng = random.Random(5)
        iv = random_string(16, expected_rng)
        prefix = random_string(64, expected_rng)
        assert decrypt(ciphertext, SALT, iv) == prefix + '密码pässword'

    def test_salt_is_stripped(self):
        padded = encrypt_password('secret', f"  {SALT}\n", random.Random(9))
        plain = encrypt_password('secret', SALT, random.Random(9))
        assert padded == plain

    @pytest.mark.parametrize('salt', ['A' * 24, 'B' * 32])
    def test_longer_keys(self, salt):
        ciphertext = encrypt_password('secret', salt, random.Random(2))
        assert base64.b64decode(ciphertext)

    @pytest.mark.parametrize('salt', ['', 'short', 'x' * 15, 'x' * 17, 'x' * 33])
    def test_invalid_key_length(self, salt):
        with pytest.raises(PasswordEncryptionError, match="Invalid key length"):
            encrypt_password('secret', salt)

    def test_encryption_error_is_value_error(self):
        with pytest.raises(ValueError):
            encrypt_password('secret', 'short')


class TestPasswordEncryptor:
    """Test suite for PasswordEncryptor."""

    def test_encrypt_matches_function(self):
        encryptor = PasswordEncryptor(SALT, random.Random(11))
        assert encryptor.encrypt('secret') == encrypt_password('secret', SALT, random.Random(11))
