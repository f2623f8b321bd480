"""Bcrypt Identity Service — IdentityService protocol backed by bcrypt.

Invariants:
    - Hashing and verification run in a worker thread (bcrypt is CPU-bound)
    - A malformed stored hash verifies as False, never raises
    - Passwords are cut to bcrypt's 72-byte input limit before hashing and checking

Design Decisions:
    - bcrypt called directly, no passlib CryptContext
"""

import asyncio
import logging

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _secret_bytes(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


class BcryptIdentityService:
    def __init__(self, rounds: int = 10):
        self._rounds = rounds

    def _hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_secret_bytes(plaintext), salt).decode("utf-8")

    @staticmethod
    def _verify(plaintext: str, stored_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_secret_bytes(plaintext), stored_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning(f"Unverifiable password hash: {e}")
            return False

    async def hash_password(self, plaintext: str) -> str:
        return await asyncio.to_thread(self._hash, plaintext)

    async def verify_password(self, plaintext: str, stored_hash: str) -> bool:
        return await asyncio.to_thread(self._verify, plaintext, stored_hash)
