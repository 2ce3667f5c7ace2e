"""Unit tests for CredentialStore."""

from unittest.mock import AsyncMock

import pytest

from camrelay.app_config import SeedUser
from camrelay.domain.auth.credentials import CredentialStore
from camrelay.schemas import User


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_credentials(self, mock_redis: AsyncMock):
        store = CredentialStore(mock_redis)

        user = await store.authenticate("testuser", "password123")

        assert user == User(user_id="1", username="testuser")
        mock_redis.hgetall.assert_called_once_with("user:testuser")

    @pytest.mark.asyncio
    async def test_wrong_password(self, mock_redis: AsyncMock):
        store = CredentialStore(mock_redis)
        assert await store.authenticate("testuser", "wrong") is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, mock_redis: AsyncMock):
        store = CredentialStore(mock_redis)
        assert await store.authenticate("nobody", "password123") is None

    @pytest.mark.asyncio
    async def test_empty_input_skips_lookup(self, mock_redis: AsyncMock):
        store = CredentialStore(mock_redis)

        assert await store.authenticate("", "password123") is None
        assert await store.authenticate("testuser", "") is None
        mock_redis.hgetall.assert_not_called()

    @pytest.mark.asyncio
    async def test_bytes_responses_are_decoded(self):
        redis_client = AsyncMock()
        redis_client.hgetall = AsyncMock(
            return_value={b"id": b"7", b"username": b"cam", b"password": b"secret"}
        )
        store = CredentialStore(redis_client, key_prefix="account")

        user = await store.authenticate("cam", "secret")

        assert user == User(user_id="7", username="cam")
        redis_client.hgetall.assert_called_once_with("account:cam")


class TestSeedUsers:
    @pytest.mark.asyncio
    async def test_creates_missing_users_only(self, mock_redis: AsyncMock):
        store = CredentialStore(mock_redis)
        users = [
            SeedUser(id="1", username="testuser", password="password123"),
            SeedUser(id="2", username="viewer", password="viewerpass"),
        ]

        seeded = await store.seed_users(users)

        assert seeded == 1
        mock_redis.hset.assert_called_once_with(
            "user:viewer",
            mapping={"id": "2", "username": "viewer", "password": "viewerpass"},
        )
