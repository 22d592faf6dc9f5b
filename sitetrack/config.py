"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All deployment-specific values come from environment variables or .env
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://sitetrack:sitetrack@db:5432/sitetrack"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Visit tracking
    tracking_excluded_prefixes: list[str] = ["/admin"]
    tracking_dispatch_delay_ms: int = 500
    session_inactivity_minutes: int = 30
    identity_store_path: str = ".sitetrack/identity.json"

    # Remote ingest (HttpTelemetrySink); empty = write to the local database
    telemetry_endpoint: str = ""
    telemetry_timeout_seconds: float = 5.0

    # System logs
    system_logging_enabled: bool = True
    log_query_limit: int = 200
    log_retention_days: int = 30

    # Reporting
    visit_stats_top_pages: int = 10
    visit_stats_top_referrers: int = 5

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
