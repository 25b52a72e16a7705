"""
Security Utilities

Password hashing, service API key generation, shared-secret comparison and
the platform's credential cipher.

Uses pwdlib (modern replacement for unmaintained passlib) for password
hashing and cryptography for the credential cipher.
"""

import base64
import hashlib
import json
import os
import secrets
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher

from flowsync.core.exceptions import CipherError

# The platform hashes owner passwords with bcrypt at cost 10
BCRYPT_ROUNDS = 10

password_hash = PasswordHash((BcryptHasher(rounds=BCRYPT_ROUNDS),))

API_KEY_PREFIX = "n8n_api_"


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    return password_hash.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Returns:
        True if password matches, False otherwise
    """
    return password_hash.verify(plain_password, hashed_password)


def generate_api_key() -> str:
    """Generate a long-lived service API key for the public platform API."""
    return API_KEY_PREFIX + secrets.token_hex(16)


def secrets_match(provided: str | None, expected: str) -> bool:
    """
    Compare a provided shared secret against the configured one.

    Uses constant-time comparison.
    """
    if not provided:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


# =============================================================================
# Platform credential cipher
# =============================================================================

_SALTED_MAGIC = b"Salted__"
_SALT_LENGTH = 8


class PlatformCipher:
    """
    The platform's credential data cipher.

    Credential data is serialized as compact JSON and encrypted with
    AES-256-CBC. Key and IV are derived OpenSSL-style (EVP_BytesToKey with
    MD5) from the encryption key and a random 8-byte salt. The output is
    base64("Salted__" + salt + ciphertext), which the platform decrypts with
    the same encryption key.
    """

    def __init__(self, encryption_key: str):
        if not encryption_key:
            raise CipherError("Encryption key is required")
        self._secret = encryption_key.encode("latin-1", errors="replace")

    def _key_and_iv(self, salt: bytes) -> tuple[bytes, bytes]:
        password = self._secret + salt
        hash1 = hashlib.md5(password).digest()
        hash2 = hashlib.md5(hash1 + password).digest()
        iv = hashlib.md5(hash2 + password).digest()
        return hash1 + hash2, iv

    def encrypt(self, data: dict[str, Any]) -> str:
        """
        Encrypt a credential data mapping.

        Raises:
            CipherError: If the data cannot be serialized or encrypted
        """
        try:
            plaintext = json.dumps(data, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise CipherError(f"Credential data is not serializable: {e}") from e

        salt = os.urandom(_SALT_LENGTH)
        key, iv = self._key_and_iv(salt)

        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return base64.b64encode(_SALTED_MAGIC + salt + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> dict[str, Any]:
        """
        Decrypt a value produced by encrypt() (or by the platform itself).

        Raises:
            CipherError: If the token is malformed or the key is wrong
        """
        try:
            raw = base64.b64decode(token)
        except ValueError as e:
            raise CipherError("Credential data is not valid base64") from e

        if not raw.startswith(_SALTED_MAGIC):
            raise CipherError("Credential data has no salt header")

        salt = raw[len(_SALTED_MAGIC):len(_SALTED_MAGIC) + _SALT_LENGTH]
        ciphertext = raw[len(_SALTED_MAGIC) + _SALT_LENGTH:]
        key, iv = self._key_and_iv(salt)

        try:
            decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return json.loads(plaintext)
        except ValueError as e:
            raise CipherError("Failed to decrypt credential data") from e
