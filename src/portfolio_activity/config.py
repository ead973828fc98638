import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from portfolio_activity.errors import ConfigError

load_dotenv()

CODING_STATS_PROVIDERS = ("wakapi", "wakatime")


def _optional_float(name: str) -> float | None:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # GitHub
    github_username: str | None = os.getenv("GITHUB_USERNAME")
    github_token: str | None = os.getenv("GITHUB_TOKEN")
    github_api_url: str = os.getenv("GITHUB_API_URL", "https://api.github.com")

    # Coding stats ("wakapi" public endpoint or "wakatime" authenticated API)
    coding_stats_provider: str = os.getenv("CODING_STATS_PROVIDER", "wakapi")
    wakapi_base_url: str = os.getenv("WAKAPI_BASE_URL", "https://wakapi.dev")
    wakapi_username: str | None = os.getenv("WAKAPI_USERNAME")
    wakatime_base_url: str = os.getenv("WAKATIME_BASE_URL", "https://wakatime.com")
    wakatime_username: str | None = os.getenv("WAKATIME_USERNAME")
    wakatime_api_key: str | None = os.getenv("WAKATIME_API_KEY")

    # Images
    image_root: str = os.getenv("IMAGE_ROOT", "public")

    # Cache
    proxy_cache_ttl: float = float(os.getenv("PROXY_CACHE_TTL", "1800"))  # 30 minutes
    stale_grace: int = int(os.getenv("STALE_GRACE", "300"))
    metadata_cache_ttl: float = float(os.getenv("METADATA_CACHE_TTL", "3600"))  # 1 hour
    sweep_interval: float | None = _optional_float("SWEEP_INTERVAL")

    # Upstream
    upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT", "10"))
    commit_window_days: int = int(os.getenv("COMMIT_WINDOW_DAYS", "30"))
    commit_page_size: int = int(os.getenv("COMMIT_PAGE_SIZE", "100"))
    user_agent: str = os.getenv("USER_AGENT", "portfolio-activity/0.1")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def effective_sweep_interval(self) -> float:
        """Sweep interval, defaulting to a twelfth of the metadata TTL."""
        if self.sweep_interval is not None:
            return self.sweep_interval
        return self.metadata_cache_ttl / 12

    @property
    def proxy_sweep_interval(self) -> float:
        """Sweep interval for upstream data, a twelfth of its TTL plus grace."""
        return (self.proxy_cache_ttl + self.stale_grace) / 12

    @property
    def coding_stats_handle(self) -> str | None:
        """Username for the configured coding stats provider."""
        if self.coding_stats_provider == "wakatime":
            return self.wakatime_username
        return self.wakapi_username

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.proxy_cache_ttl <= 0 or self.metadata_cache_ttl <= 0:
            raise ValueError("PROXY_CACHE_TTL and METADATA_CACHE_TTL must be positive")

        if self.stale_grace < 0:
            raise ValueError("STALE_GRACE must not be negative")

        if self.coding_stats_provider not in CODING_STATS_PROVIDERS:
            raise ValueError(
                f"CODING_STATS_PROVIDER must be one of {list(CODING_STATS_PROVIDERS)}, "
                f"got {self.coding_stats_provider!r}"
            )

        if not 0 < self.effective_sweep_interval < self.metadata_cache_ttl:
            raise ValueError("SWEEP_INTERVAL must be positive and shorter than METADATA_CACHE_TTL")

        if self.upstream_timeout <= 0:
            raise ValueError("UPSTREAM_TIMEOUT must be positive")

        if self.commit_window_days < 0:
            raise ValueError("COMMIT_WINDOW_DAYS must not be negative")

    def validate_credentials(self) -> None:
        """Fail fast when identifiers for upstream services are missing.

        Raises:
            ConfigError: If a required variable is unset
        """
        missing = []
        if not self.github_username:
            missing.append("GITHUB_USERNAME")

        if self.coding_stats_provider == "wakatime":
            if not self.wakatime_username:
                missing.append("WAKATIME_USERNAME")
            if not self.wakatime_api_key:
                missing.append("WAKATIME_API_KEY")
        elif not self.wakapi_username:
            missing.append("WAKAPI_USERNAME")

        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
