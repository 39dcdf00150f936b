import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()

BACKENDS = ("memory", "redis")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Cache policy
    default_expiry_seconds: int = int(os.getenv("STASH_DEFAULT_EXPIRY", "172800"))  # 2 days default
    force_pull: bool = os.getenv("STASH_FORCE_PULL", "false").lower() == "true"
    strict_codecs: bool = os.getenv("STASH_STRICT_CODECS", "false").lower() == "true"
    single_flight: bool = os.getenv("STASH_SINGLE_FLIGHT", "false").lower() == "true"
    debug: bool = os.getenv("STASH_DEBUG", "false").lower() == "true"

    # Storage
    backend: str = os.getenv("STASH_BACKEND", "memory")
    key_prefix: str = os.getenv("STASH_KEY_PREFIX", "stash:")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "info")
    log_json: bool = os.getenv("LOG_JSON", "false").lower() == "true"

    @property
    def effective_log_level(self) -> str:
        """Log level after applying the debug switch.

        Returns:
            "debug" when STASH_DEBUG is set, otherwise LOG_LEVEL
        """
        return "debug" if self.debug else self.log_level

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.default_expiry_seconds < 0:
            raise ValueError("STASH_DEFAULT_EXPIRY must be >= 0 (0 means never expires)")

        if self.backend not in BACKENDS:
            raise ValueError(f"STASH_BACKEND must be one of {list(BACKENDS)}, got {self.backend!r}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
