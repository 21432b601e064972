"""Application configuration via Pydantic Settings."""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Cache
    CACHE_BACKEND: str = "memory"  # 'memory' or 'redis'
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_SECONDS: int = 15 * 60  # 15 minutes

    # Vendor fetching
    FETCH_TIMEOUT_SECONDS: float = 20.0
    FETCH_MAX_ATTEMPTS: int = 1  # 1 = single GET, no retry
    FETCH_RETRY_BACKOFF: float = 1.0
    USER_AGENT: str = (
        "Mozilla/5.0 (compatible; FPV-Deal-Hunter/1.0; "
        "+https://github.com/fpv-deal-hunter/fpv-deal-hunter)"
    )

    @model_validator(mode="after")
    def check_values(self) -> "Settings":
        """Reject cache backends and retry counts the app cannot honour."""
        backend = self.CACHE_BACKEND.lower()
        if backend not in ("memory", "redis"):
            raise ValueError(f"Unsupported CACHE_BACKEND: {self.CACHE_BACKEND}")
        self.CACHE_BACKEND = backend
        if self.FETCH_MAX_ATTEMPTS < 1:
            raise ValueError("FETCH_MAX_ATTEMPTS must be at least 1")
        return self


settings = Settings()
