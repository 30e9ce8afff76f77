"""
Settings Configuration
Pydantic-based configuration, one settings class per concern.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class SearchSettings(BaseSettings):
    """Search provider configuration (Serper first, Brave as fallback)."""
    serper_api_key: Optional[str] = Field(default=None, description="Serper (Google JSON) API key")
    brave_api_key: Optional[str] = Field(default=None, description="Brave Search API key")
    gl: str = Field(default="au", description="Default country code for unknown markets")
    hl: str = Field(default="en", description="Default interface language for unknown markets")
    results_per_query: int = Field(default=6, description="Results requested per promo query")
    json_timeout: float = Field(default=10.0, description="Timeout for JSON API calls (seconds)")

    class Config:
        env_prefix = "SEARCH_"

    @field_validator("gl", "hl", mode="before")
    @classmethod
    def _lower(cls, value) -> str:
        return str(value or "").strip().lower()


class ResearchSettings(BaseSettings):
    """Research collector limits."""
    max_urls: int = Field(default=90, description="URL cap for MAX research")
    deep_max_urls: int = Field(default=60, description="URL cap for DEEP research")
    concurrency: int = Field(default=6, description="Concurrent page fetches (clamped 2-12)")
    fetch_timeouts: Tuple[float, ...] = Field(
        default=(9.0, 14.0),
        description="Per-attempt page fetch timeouts; one entry per attempt",
    )
    retry_delay: float = Field(default=0.25, description="Pause before the fetch retry (seconds)")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        description="Browser-like user agent for page fetches",
    )
    live_facts: bool = Field(default=True, description="Run brand/category fact searches on DEEP/MAX")

    class Config:
        env_prefix = "RESEARCH_"

    @field_validator("concurrency", mode="after")
    @classmethod
    def _clamp_concurrency(cls, value: int) -> int:
        return max(2, min(12, int(value or 6)))

    @field_validator("max_urls", "deep_max_urls", mode="after")
    @classmethod
    def _positive_cap(cls, value: int) -> int:
        return max(1, int(value))

    @field_validator("fetch_timeouts", mode="after")
    @classmethod
    def _non_empty_timeouts(cls, value: Tuple[float, ...]) -> Tuple[float, ...]:
        cleaned = tuple(float(v) for v in value if float(v) > 0)
        return cleaned or (9.0, 14.0)


class CacheSettings(BaseSettings):
    """Research cache configuration."""
    provider: str = Field(default="disk", description="Cache backend: disk, memory")
    path: str = Field(default="./data/research_cache", description="Disk cache directory")
    ttl_seconds: int = Field(default=6 * 60 * 60, description="Research pack TTL (0 disables expiry)")

    class Config:
        env_prefix = "CACHE_"


class GeneralSettings(BaseSettings):
    """General settings."""
    log_level: str = Field(default="INFO", description="Log level")
    use_rich: bool = Field(default=True, description="Rich console logging")

    class Config:
        env_prefix = "APP_"


class Settings(BaseSettings):
    """Aggregate configuration."""

    search: SearchSettings = Field(default_factory=SearchSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings, reading ``config/.env`` first when it exists."""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            search=SearchSettings(),
            research=ResearchSettings(),
            cache=CacheSettings(),
            general=GeneralSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings singleton."""
    return Settings.load_from_env_file()


def get_search_settings() -> SearchSettings:
    return get_settings().search


def get_research_settings() -> ResearchSettings:
    return get_settings().research


def get_cache_settings() -> CacheSettings:
    return get_settings().cache
