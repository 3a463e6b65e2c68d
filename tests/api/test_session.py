"""Tests for player sessions."""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

import api.session as session_module
from api.session import (
    InMemorySessionStore,
    PlayerSession,
    SessionSigner,
    connect_redis,
    extract_session_id,
    get_session_signer,
    new_session_id,
)


class TestSessionSigner:
    """Tests for SessionSigner class."""

    def test_round_trip(self):
        """Test that unsign returns the signed session ID."""
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("table-123")

        assert token != "table-123"
        assert signer.unsign(token, max_age=3600) == "table-123"

    def test_tampered_token_returns_none(self):
        """Test that a forged token is refused."""
        signer = SessionSigner(secret_key="test-secret")
        assert signer.unsign("invalid-token-data", max_age=3600) is None

    def test_wrong_secret_returns_none(self):
        """Test that another server's token is refused."""
        token = SessionSigner(secret_key="secret-one").sign("table")
        assert SessionSigner(secret_key="secret-two").unsign(token, max_age=3600) is None

    def test_expired_token_returns_none(self):
        """Test that tokens older than max_age are refused."""
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("table")
        time.sleep(2)
        assert signer.unsign(token, max_age=1) is None

    def test_verify_ignores_token_age(self):
        """Test verify accepts an old token that unsign would refuse."""
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("table")
        time.sleep(1.5)
        assert signer.unsign(token, max_age=1) is None
        assert signer.verify(token) == "table"
        assert signer.verify(token + "x") is None

    def test_signer_is_shared(self):
        """Test that get_session_signer returns one instance per process."""
        assert get_session_signer() is get_session_signer()

    def test_extract_session_id(self):
        """Test extracting the raw ID from a token made by the shared signer."""
        signer = SessionSigner(secret_key="test-secret")
        with patch("api.session.get_session_signer", return_value=signer):
            assert extract_session_id(signer.sign("abc")) == "abc"
            assert extract_session_id("garbage") is None

    def test_new_session_id(self):
        """Test signed IDs are longer than the bare UUID."""
        raw = new_session_id(signed=False)
        assert len(raw) == 36
        assert raw.count("-") == 4
        assert len(new_session_id()) > 36


class TestPlayerSession:
    """Tests for the PlayerSession record."""

    def test_defaults(self):
        """Test a new session has a default name and timestamps."""
        session = PlayerSession()
        assert session.player_name == "Player"
        assert session.created_at <= session.last_activity

    def test_from_dict_ignores_unknown_keys(self):
        """Test stored data from another version still loads."""
        session = PlayerSession.from_dict(
            {"player_name": "Ada", "created_at": 1, "last_activity": 2, "extra": True}
        )
        assert session == PlayerSession("Ada", 1, 2)
        assert session.to_dict() == {"player_name": "Ada", "created_at": 1, "last_activity": 2}


class TestInMemorySessionStore:
    """Tests for InMemorySessionStore class."""

    @pytest_asyncio.fixture
    async def store(self):
        """Create a fresh session store."""
        return InMemorySessionStore()

    @pytest.mark.asyncio
    async def test_save_and_get(self, store):
        """Test storing and loading a session."""
        await store.save("s1", PlayerSession(player_name="Ada"), ttl=3600)
        loaded = await store.get("s1")
        assert loaded.player_name == "Ada"
        assert await store.exists("s1")

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        """Test that unknown sessions are None."""
        assert await store.get("nope") is None
        assert not await store.exists("nope")

    @pytest.mark.asyncio
    async def test_delete(self, store):
        """Test deleting, including sessions that do not exist."""
        await store.save("s1", PlayerSession(), ttl=3600)
        await store.delete("s1")
        await store.delete("never-existed")
        assert await store.get("s1") is None

    @pytest.mark.asyncio
    async def test_expiry(self, store):
        """Test that expired sessions disappear."""
        await store.save("short", PlayerSession(), ttl=1)
        await store.save("long", PlayerSession(), ttl=3600)
        time.sleep(1.5)

        assert await store.purge_expired() == 1
        assert await store.get("short") is None
        assert await store.exists("long")

    @pytest.mark.asyncio
    async def test_touch_creates_and_renames(self, store):
        """Test touch creates missing sessions and updates the name."""
        created = await store.touch("s1")
        assert created.player_name == "Player"

        renamed = await store.touch("s1", player_name="Grace")
        assert renamed.player_name == "Grace"
        assert renamed.created_at == created.created_at

        kept = await store.touch("s1")
        assert kept.player_name == "Grace"


class TestRedisFallback:
    """Tests for running without Redis."""

    @pytest.mark.asyncio
    async def test_unreachable_redis_returns_none(self):
        """Test a failed ping falls back instead of raising."""
        client = MagicMock()
        client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))

        with patch.object(session_module, "_redis_checked", False), \
                patch.object(session_module, "_redis_client", None), \
                patch("api.session.redis.from_url", return_value=client):
            assert await connect_redis() is None
            # The attempt is not repeated
            assert await connect_redis() is None

        client.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_falls_back_to_memory(self):
        """Test the session store is in-memory when Redis is down."""
        with patch.object(session_module, "_session_store", None), \
                patch("api.session.connect_redis", AsyncMock(return_value=None)):
            store = await session_module.get_session_store()
        assert isinstance(store, InMemorySessionStore)
