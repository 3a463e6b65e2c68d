"""Player sessions: signed session IDs and per-player metadata.

Only who is playing and when is stored here. The table itself (cards,
bankroll, round count) lives in process memory and is never persisted.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from redis.exceptions import RedisError
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from config import config

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_NAME = "Player"


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key,
            salt="blackjack-session",
        )

    def sign(self, session_id: str) -> str:
        """Create a signed token from a session ID."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract the session ID from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session ID if valid, None otherwise
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None

    def verify(self, token: str) -> str | None:
        """Return the session ID if this server signed the token, whatever its age."""
        try:
            return self._serializer.loads(token)
        except BadSignature:
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the process-wide signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def new_session_id(signed: bool = True) -> str:
    """Generate a fresh session ID, signed by default."""
    session_id = str(uuid4())
    return get_session_signer().sign(session_id) if signed else session_id


def extract_session_id(token: str) -> str | None:
    """
    Return the raw session ID inside a signed token, or None if forged.

    Age is not checked here: a session lives as long as the store keeps
    it, and every request restarts its expiry.
    """
    return get_session_signer().verify(token)


@dataclass
class PlayerSession:
    """Metadata kept for one player's table."""

    player_name: str = DEFAULT_PLAYER_NAME
    created_at: int = field(default_factory=lambda: int(time.time()))
    last_activity: int = field(default_factory=lambda: int(time.time()))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerSession":
        """Rebuild from stored data, ignoring unknown keys."""
        known = {k: data[k] for k in ("player_name", "created_at", "last_activity") if k in data}
        return cls(**known)


class SessionStore(ABC):
    """Abstract player-session store with per-entry expiry."""

    @abstractmethod
    async def get(self, session_id: str) -> PlayerSession | None:
        """Return the session, or None if missing or expired."""
        ...

    @abstractmethod
    async def save(self, session_id: str, session: PlayerSession, ttl: int | None = None) -> None:
        """Store a session, restarting its expiry."""
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Remove a session; missing sessions are ignored."""
        ...

    async def exists(self, session_id: str) -> bool:
        """Check if a live session exists."""
        return await self.get(session_id) is not None

    async def touch(self, session_id: str, player_name: str | None = None) -> PlayerSession:
        """
        Record activity on a session, creating it if needed.

        Args:
            session_id: Session to update
            player_name: New display name, or None to keep the current one

        Returns:
            The stored session
        """
        session = await self.get(session_id) or PlayerSession()
        if player_name is not None:
            session.player_name = player_name
        session.last_activity = int(time.time())
        await self.save(session_id, session)
        return session


class InMemorySessionStore(SessionStore):
    """In-memory session store for local development and tests."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[PlayerSession, float]] = {}

    async def get(self, session_id: str) -> PlayerSession | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        session, expires_at = entry
        if expires_at < time.time():
            del self._sessions[session_id]
            return None
        return session

    async def save(self, session_id: str, session: PlayerSession, ttl: int | None = None) -> None:
        self._sessions[session_id] = (session, time.time() + (ttl or config.session_ttl))

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def purge_expired(self) -> int:
        """Drop expired sessions and return how many were removed."""
        now = time.time()
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at < now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)


class RedisSessionStore(SessionStore):
    """Redis-backed session store; expiry is handled by Redis."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client
        self._prefix = "blackjack:player:"

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def get(self, session_id: str) -> PlayerSession | None:
        raw = await self._redis.get(self._key(session_id))
        if raw is None:
            return None
        return PlayerSession.from_dict(json.loads(raw))

    async def save(self, session_id: str, session: PlayerSession, ttl: int | None = None) -> None:
        await self._redis.setex(
            self._key(session_id),
            ttl or config.session_ttl,
            json.dumps(session.to_dict()),
        )

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id))


_redis_client: redis.Redis | None = None
_redis_checked = False


async def connect_redis() -> redis.Redis | None:
    """
    Return the shared Redis client, or None if Redis is unreachable.

    The connection is attempted once per process; sessions and the
    leaderboard share the result.
    """
    global _redis_client, _redis_checked
    if _redis_checked:
        return _redis_client

    _redis_checked = True
    client = redis.from_url(config.redis.url)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis unavailable at %s (%s), using in-memory storage",
                       config.redis.url, exc)
        return None
    logger.info("Connected to Redis at %s", config.redis.url)
    _redis_client = client
    return client


_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Get or create the session store."""
    global _session_store
    if _session_store is None:
        client = await connect_redis()
        _session_store = RedisSessionStore(client) if client else InMemorySessionStore()
    return _session_store


async def open_session(player_name: str = DEFAULT_PLAYER_NAME) -> str:
    """Create a session for a player and return its signed ID."""
    store = await get_session_store()
    session_id = new_session_id()
    await store.save(session_id, PlayerSession(player_name=player_name))
    return session_id


async def load_session(session_id: str) -> PlayerSession | None:
    """Return a live session, or None."""
    store = await get_session_store()
    return await store.get(session_id)


async def touch_session(session_id: str, player_name: str | None = None) -> PlayerSession:
    """Record activity on a session, creating it if needed."""
    store = await get_session_store()
    return await store.touch(session_id, player_name)
