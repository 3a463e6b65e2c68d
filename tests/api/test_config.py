"""Tests for configuration classes."""

import os
from unittest.mock import patch

import pytest

from config import (
    AppConfig,
    CORSConfig,
    GameConfig,
    LeaderboardConfig,
    RateLimitConfig,
    RedisConfig,
    SecurityConfig,
    _parse_cors_origins,
)
from core.rules import RuleSet


class TestGameConfig:
    """Tests for the table rules read from the environment."""

    def test_defaults(self):
        """Test the standard single-deck table."""
        with patch.dict(os.environ, {}, clear=True):
            config = GameConfig()

        assert config.starting_bankroll == 2500
        assert config.dealer_stands_on == 17
        assert config.round_cap == 5
        assert config.blackjack_payout == 2

    def test_from_env(self):
        """Test overriding every rule."""
        env = {
            "STARTING_BANKROLL": "1000",
            "DEALER_STANDS_ON": "16",
            "ROUND_CAP": "10",
            "BLACKJACK_PAYOUT": "3",
        }
        with patch.dict(os.environ, env):
            config = GameConfig()

        assert config.starting_bankroll == 1000
        assert config.dealer_stands_on == 16
        assert config.round_cap == 10
        assert config.blackjack_payout == 3

    def test_frozen(self):
        """Test that GameConfig is immutable."""
        config = GameConfig()
        with pytest.raises(AttributeError):
            config.round_cap = 99

    def test_rules_from_config(self):
        """Test building table rules from configuration."""
        with patch.dict(os.environ, {"ROUND_CAP": "3", "STARTING_BANKROLL": "500"}):
            rules = RuleSet.from_config(GameConfig())

        assert rules.round_cap == 3
        assert rules.starting_bankroll == 500
        assert rules.dealer_stands_on == 17

    @pytest.mark.parametrize(
        "env",
        [
            {"ROUND_CAP": "0"},
            {"STARTING_BANKROLL": "0"},
            {"DEALER_STANDS_ON": "30"},
        ],
    )
    def test_invalid_rules_rejected(self, env):
        """Test nonsensical tables are refused."""
        with patch.dict(os.environ, env):
            game = GameConfig()
        with pytest.raises(ValueError):
            RuleSet.from_config(game)


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_defaults(self):
        """Test default AppConfig values."""
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()

        assert config.debug is False
        assert config.host == "0.0.0.0"
        assert config.port == 8000
        assert config.session_ttl == 3600
        assert config.log_level == "INFO"

    def test_log_level_uppercased(self):
        """Test LOG_LEVEL accepts any case."""
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            assert AppConfig().log_level == "DEBUG"

    def test_debug_from_env(self):
        """Test debug mode from environment."""
        with patch.dict(os.environ, {"DEBUG": "TRUE"}):
            assert AppConfig().debug is True

    def test_nested_configs(self):
        """Test that AppConfig has nested configuration objects."""
        config = AppConfig()

        assert isinstance(config.game, GameConfig)
        assert isinstance(config.leaderboard, LeaderboardConfig)
        assert isinstance(config.redis, RedisConfig)
        assert isinstance(config.cors, CORSConfig)
        assert isinstance(config.rate_limit, RateLimitConfig)
        assert isinstance(config.security, SecurityConfig)


class TestLeaderboardConfig:
    """Tests for LeaderboardConfig class."""

    def test_defaults(self):
        """Test default leaderboard settings."""
        with patch.dict(os.environ, {}, clear=True):
            config = LeaderboardConfig()

        assert config.size == 10
        assert config.auto_submit is True

    def test_from_env(self):
        """Test overriding size and disabling automatic submission."""
        with patch.dict(os.environ, {"LEADERBOARD_SIZE": "25", "LEADERBOARD_AUTO_SUBMIT": "false"}):
            config = LeaderboardConfig()

        assert config.size == 25
        assert config.auto_submit is False


class TestServiceConfig:
    """Tests for CORS, rate limiting, security and Redis settings."""

    def test_cors_origins_parsed(self):
        """Test comma-separated origins with whitespace."""
        with patch.dict(os.environ, {"CORS_ORIGINS": " http://a.test , http://b.test ,"}):
            assert _parse_cors_origins() == ["http://a.test", "http://b.test"]

    def test_cors_default_origin(self):
        """Test the default origin."""
        with patch.dict(os.environ, {}, clear=True):
            assert CORSConfig().allowed_origins == ["http://localhost:8000"]

    def test_rate_limit(self):
        """Test rate limit parsing and the slowapi limit string."""
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "False", "RATE_LIMIT_RPM": "120"}):
            config = RateLimitConfig()

        assert config.enabled is False
        assert config.limit == "120/minute"

    @pytest.mark.parametrize("value", ["false", "0", "no", "yes"])
    def test_only_true_enables(self, value):
        """Test flags are true only for the word true."""
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": value}):
            assert RateLimitConfig().enabled is False

    def test_secret_key(self):
        """Test the secret comes from the environment or is generated."""
        with patch.dict(os.environ, {"SECRET_KEY": "my-secret"}):
            assert SecurityConfig().secret_key == "my-secret"
        with patch.dict(os.environ, {}, clear=True):
            assert len(SecurityConfig().secret_key) >= 32

    def test_redis_url(self):
        """Test Redis URL generation with and without a password."""
        with patch.dict(os.environ, {}, clear=True):
            assert RedisConfig().url == "redis://localhost:6379/0"
        with patch.dict(os.environ, {"REDIS_PASSWORD": "pw", "REDIS_HOST": "cache", "REDIS_DB": "2"}):
            assert RedisConfig().url == "redis://:pw@cache:6379/2"
