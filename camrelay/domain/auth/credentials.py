"""Credential lookup backed by Redis hashes `<prefix>:<username>`."""

from __future__ import annotations

import hmac
from collections.abc import Iterable

from loguru import logger
from redis.asyncio import Redis

from camrelay.app_config import SeedUser
from camrelay.schemas import User


def _text(value) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class CredentialStore:
    def __init__(self, redis_client: Redis, key_prefix: str = "user"):
        self.redis_client = redis_client
        self.key_prefix = key_prefix

    def key(self, username: str) -> str:
        return f"{self.key_prefix}:{username}"

    async def authenticate(self, username: str, password: str) -> User | None:
        """Return the user when `password` matches the stored one, else None.

        Unknown users and wrong passwords are not distinguished.
        """
        if not username or not password:
            return None

        raw = await self.redis_client.hgetall(self.key(username))  # type: ignore[misc]
        data = {_text(k): _text(v) for k, v in (raw or {}).items()}

        stored = data.get("password")
        if stored is None:
            logger.debug("Unknown user: {}", username)
            return None

        if not hmac.compare_digest(stored.encode("utf-8"), password.encode("utf-8")):
            logger.debug("Password mismatch for user: {}", username)
            return None

        return User(
            user_id=data.get("id") or username,
            username=data.get("username") or username,
        )

    async def seed_users(self, users: Iterable[SeedUser]) -> int:
        """Create missing user hashes; existing users are left untouched."""
        seeded = 0
        for user in users:
            key = self.key(user.username)
            if await self.redis_client.exists(key):
                logger.info("User {} already exists in Redis", user.username)
                continue

            await self.redis_client.hset(  # type: ignore[misc]
                key,
                mapping={"id": user.id, "username": user.username, "password": user.password},
            )
            logger.info("Seeded user {} into Redis", user.username)
            seeded += 1

        return seeded
