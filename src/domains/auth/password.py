# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing utilities using bcrypt.

Only one-way hashes are ever stored. The cost factor is fixed per
deployment (SECURITY_BCRYPT_ROUNDS, default 10).

Example:
    >>> hasher = PasswordHasher()
    >>> hashed = hasher.hash("my_password")
    >>> hasher.verify("my_password", hashed)
    True
"""

import asyncio
import logging
from collections.abc import Iterable

import bcrypt

from src.models.common import MAX_PASSWORD_BYTES, fits_bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Secure password hashing using bcrypt.

    Attributes:
        _rounds: Number of bcrypt rounds for hashing.

    Example:
        >>> hasher = PasswordHasher(rounds=10)
        >>> hashed = hasher.hash("secure_password")
        >>> hasher.verify("wrong_password", hashed)
        False
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        """Initialize the password hasher.

        Args:
            rounds: Number of bcrypt rounds. Higher is more secure but slower.
        """
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password to hash.

        Returns:
            Bcrypt hash string with salt embedded.

        Raises:
            ValueError: If password is empty or longer than MAX_PASSWORD_BYTES.
        """
        if not password:
            raise ValueError("Password cannot be empty")
        if not fits_bcrypt(password):
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Args:
            password: Plain text password to verify.
            password_hash: Bcrypt hash to verify against.

        Returns:
            True if password matches the hash, False otherwise.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError as e:
            logger.warning("Password verification failed: %s", str(e))
            return False

    async def hash_many(self, passwords: Iterable[str]) -> list[str]:
        """Hash several passwords concurrently in worker threads.

        Identical plaintexts are hashed once and share the resulting hash.
        Order of the returned list matches the input.

        Args:
            passwords: Plain text passwords.

        Returns:
            Bcrypt hashes, one per input password.
        """
        passwords = list(passwords)
        unique = list(dict.fromkeys(passwords))
        hashes = await asyncio.gather(
            *(asyncio.to_thread(self.hash, password) for password in unique)
        )
        by_plaintext = dict(zip(unique, hashes))
        return [by_plaintext[password] for password in passwords]

