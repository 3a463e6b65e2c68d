"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field
from typing import Callable


def _env_str(name: str, default: str) -> Callable[[], str]:
    """Default factory reading a string variable."""
    return lambda: os.getenv(name, default)


def _env_int(name: str, default: int) -> Callable[[], int]:
    """Default factory reading an integer variable."""
    return lambda: int(os.getenv(name, str(default)))


def _env_flag(name: str, default: bool) -> Callable[[], bool]:
    """Default factory reading a flag; only "true" (any case) is true."""
    return lambda: os.getenv(name, "true" if default else "false").lower() == "true"


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting for the public endpoints."""

    enabled: bool = field(default_factory=_env_flag("RATE_LIMIT_ENABLED", True))
    requests_per_minute: int = field(default_factory=_env_int("RATE_LIMIT_RPM", 60))

    @property
    def limit(self) -> str:
        """Limit string in slowapi notation."""
        return f"{self.requests_per_minute}/minute"


@dataclass(frozen=True)
class SecurityConfig:
    """Session signing secret; random per process unless SECRET_KEY is set."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY") or secrets.token_urlsafe(32)
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    host: str = field(default_factory=_env_str("REDIS_HOST", "localhost"))
    port: int = field(default_factory=_env_int("REDIS_PORT", 6379))
    db: int = field(default_factory=_env_int("REDIS_DB", 0))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class GameConfig:
    """Table rules every new session is created with."""

    starting_bankroll: int = field(default_factory=_env_int("STARTING_BANKROLL", 2500))
    dealer_stands_on: int = field(default_factory=_env_int("DEALER_STANDS_ON", 17))
    round_cap: int = field(default_factory=_env_int("ROUND_CAP", 5))
    blackjack_payout: int = field(default_factory=_env_int("BLACKJACK_PAYOUT", 2))


@dataclass(frozen=True)
class LeaderboardConfig:
    """Leaderboard storage and ranking."""

    size: int = field(default_factory=_env_int("LEADERBOARD_SIZE", 10))
    redis_key: str = "blackjack:scores"
    # Submit a score automatically whenever a round resolves
    auto_submit: bool = field(default_factory=_env_flag("LEADERBOARD_AUTO_SUBMIT", True))


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=_env_flag("DEBUG", False))
    host: str = field(default_factory=_env_str("HOST", "0.0.0.0"))
    port: int = field(default_factory=_env_int("PORT", 8000))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    session_ttl: int = field(default_factory=_env_int("SESSION_TTL", 3600))

    redis: RedisConfig = field(default_factory=RedisConfig)
    game: GameConfig = field(default_factory=GameConfig)
    leaderboard: LeaderboardConfig = field(default_factory=LeaderboardConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


# Global configuration instance
config = AppConfig()
