"""Runtime configuration for the Catalog API."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogSettings(BaseSettings):
    """Environment-aware settings for the Catalog API service."""

    database_url: str = Field(
        default="sqlite:///./data/catalog.db",
        description="Connection URL for the catalog database.",
    )
    database_echo: bool = Field(
        default=False, description="Enable SQL echo for debugging queries."
    )
    feed_url: str = Field(
        default="https://www.swapi.tech/api/films",
        description="Endpoint of the external film feed used for reconciliation.",
    )
    feed_timeout: float = Field(
        default=30.0, description="Timeout in seconds for a single feed request."
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for the Redis-backed sync queue.",
    )
    redis_queue_name: str = Field(
        default="movie-catalog",
        description="RQ queue name used for reconciliation runs.",
    )
    queue_worker_name: str = Field(
        default="catalog-worker",
        description="Identifier used when reporting sync run executions.",
    )
    sync_interval_hours: float = Field(
        default=24.0,
        gt=0,
        description="Delay between two scheduled reconciliation passes.",
    )
    sync_stale_after_minutes: float = Field(
        default=120.0,
        gt=0,
        description=(
            "Queued or running sync runs without progress for this long are marked "
            "failed before a scheduled pass decides whether to start."
        ),
    )
    principal_header: str = Field(
        default="X-Principal",
        description="Header carrying the principal verified by the upstream gateway.",
    )
    role_header: str = Field(
        default="X-Principal-Role",
        description="Header carrying the role claim of the verified principal.",
    )

    model_config = SettingsConfigDict(
        env_prefix="MOVIE_CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
