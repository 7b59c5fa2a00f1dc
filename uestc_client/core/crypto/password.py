"""
Password encryption for the IDAS login form.

Replicates the portal's ``encrypt.js``: AES-CBC keyed with the page's
``pwdEncryptSalt``, a random 16 character IV that is never transmitted, and
a random 64 character prefix in front of the password. The server strips
the first 64 characters after decrypting.
"""
import base64
import random
from typing import Optional

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad

from ..exceptions import PasswordEncryptionError


AES_CHARS = 'ABCDEFGHJKMNPQRSTWXYZabcdefhijkmnprstwxyz2345678'

IV_LENGTH = 16
PREFIX_LENGTH = 64

VALID_KEY_LENGTHS = (16, 24, 32)


def random_string(length: int, rng: Optional[random.Random] = None) -> str:
    """Random string over the portal's AES alphabet."""
    rng = rng or random.SystemRandom()
    return ''.join(rng.choice(AES_CHARS) for _ in range(length))


def encrypt_password(
    password: str,
    salt: str,
    rng: Optional[random.Random] = None
) -> str:
    """
    Encrypt a password the way the login page does.

    Args:
        password: Plain password
        salt: ``pwdEncryptSalt`` value scraped from the login page
        rng: Randomness source for IV and prefix; pass a seeded
             ``random.Random`` for reproducible output

    Returns:
        Base64 encoded ciphertext for the ``password`` form field

    Raises:
        PasswordEncryptionError: If the salt is not a valid AES key length
    """
    key = salt.strip().encode('utf-8')
    if len(key) not in VALID_KEY_LENGTHS:
        raise PasswordEncryptionError(f"Invalid key length: {len(key)}")

    rng = rng or random.SystemRandom()
    # Order matters for reproducibility: IV first, then prefix
    iv = random_string(IV_LENGTH, rng).encode('utf-8')
    prefix = random_string(PREFIX_LENGTH, rng)

    plaintext = (prefix + password).encode('utf-8')
    cipher = AES.new(key, AES.MODE_CBC, iv)
    ciphertext = cipher.encrypt(pad(plaintext, AES.block_size))

    return base64.b64encode(ciphertext).decode('ascii')


class PasswordEncryptor:
    """Encrypts passwords for one login page (one salt)."""

    def __init__(self, salt: str, rng: Optional[random.Random] = None):
        self.salt = salt
        self._rng = rng

    def encrypt(self, password: str) -> str:
        return encrypt_password(password, self.salt, self._rng)
