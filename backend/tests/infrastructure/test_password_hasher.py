"""Bcrypt Identity Service — tests against real bcrypt at minimum cost.

Tests cover:
    - Hash then verify round trip, wrong password rejected
    - Malformed stored hash verifies as False
    - Passwords beyond 72 bytes hash without raising
"""

from reapi.infrastructure.password_hasher import BcryptIdentityService


async def test_hash_verifies_only_original_password():
    service = BcryptIdentityService(rounds=4)
    stored = await service.hash_password("correct horse")
    assert stored.startswith("$2")
    assert stored != "correct horse"
    assert await service.verify_password("correct horse", stored)
    assert not await service.verify_password("battery staple", stored)


async def test_malformed_hash_is_false():
    service = BcryptIdentityService(rounds=4)
    assert not await service.verify_password("pw", "not-a-bcrypt-hash")


async def test_long_password_is_accepted():
    service = BcryptIdentityService(rounds=4)
    password = "x" * 100
    stored = await service.hash_password(password)
    assert await service.verify_password(password, stored)
