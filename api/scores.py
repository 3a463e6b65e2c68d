"""Leaderboard storage: append-only score records, ranked on read."""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Literal

import redis.asyncio as redis

from api.session import connect_redis
from config import config

logger = logging.getLogger(__name__)

SortKey = Literal["money", "recent"]


def make_score(name: str, money_won: int, win: bool) -> dict[str, Any]:
    """Build a score record stamped with the current time."""
    return {
        "name": name.strip(),
        "money_won": int(money_won),
        "win": bool(win),
        "timestamp": int(time.time() * 1000),
    }


def rank_scores(
    scores: list[dict[str, Any]],
    sort: SortKey = "money",
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """
    Order score records for display.

    "money" ranks by net winnings, highest first; ties keep submission
    order. "recent" lists the newest submissions first.
    """
    if sort == "money":
        ranked = sorted(scores, key=lambda s: s["money_won"], reverse=True)
    else:
        ranked = sorted(scores, key=lambda s: s["timestamp"], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


class ScoreStore(ABC):
    """Abstract append-only score store."""

    @abstractmethod
    async def add(self, score: dict[str, Any]) -> None:
        """Append a score record."""
        ...

    @abstractmethod
    async def all(self) -> list[dict[str, Any]]:
        """Return every score record in submission order."""
        ...

    async def top(self, sort: SortKey = "money", limit: int | None = None) -> list[dict[str, Any]]:
        """Return ranked score records."""
        return rank_scores(await self.all(), sort=sort, limit=limit)


class InMemoryScoreStore(ScoreStore):
    """In-memory score store for local development."""

    def __init__(self) -> None:
        self._scores: list[dict[str, Any]] = []

    async def add(self, score: dict[str, Any]) -> None:
        """Append a score record."""
        self._scores.append(dict(score))

    async def all(self) -> list[dict[str, Any]]:
        """Return every score record in submission order."""
        return [dict(s) for s in self._scores]


class RedisScoreStore(ScoreStore):
    """Redis-backed score store using a single list."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client
        self._key = config.leaderboard.redis_key

    async def add(self, score: dict[str, Any]) -> None:
        """Append a score record."""
        await self._redis.rpush(self._key, json.dumps(score))

    async def all(self) -> list[dict[str, Any]]:
        """Return every score record in submission order."""
        raw = await self._redis.lrange(self._key, 0, -1)
        return [json.loads(item) for item in raw]


# Global score store instance
_score_store: ScoreStore | None = None


async def get_score_store() -> ScoreStore:
    """Get or create the score store."""
    global _score_store

    if _score_store is not None:
        return _score_store

    client = await connect_redis()
    if client is not None:
        _score_store = RedisScoreStore(client)
    else:
        _score_store = InMemoryScoreStore()
    return _score_store


async def submit_score(name: str, money_won: int, win: bool) -> dict[str, Any]:
    """Record a score and return the stored record."""
    store = await get_score_store()
    score = make_score(name, money_won, win)
    await store.add(score)
    logger.info("Score submitted: %s %+d", score["name"], score["money_won"])
    return score
