"""Crypto module - password encryption for the login form."""
from .password import (
    AES_CHARS,
    PasswordEncryptor,
    encrypt_password,
    random_string,
)

__all__ = [
    'AES_CHARS',
    'PasswordEncryptor',
    'encrypt_password',
    'random_string',
]
