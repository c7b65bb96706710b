"""Pydantic models exposed by the Catalog API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueueHealthStatus(BaseModel):
    """Represents Redis queue connectivity status."""

    status: Literal["ok", "error"] = Field(default="ok")
    detail: str | None = Field(
        default=None, description="Optional diagnostic message when the queue is unavailable."
    )


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default="0.1.0", description="Semantic version of the API service.")
    queue: QueueHealthStatus = Field(
        default_factory=QueueHealthStatus,
        description="Health information for the reconciliation queue.",
    )


def _require_text(value: str | None) -> str | None:
    """Reject strings that are empty once surrounding whitespace is removed."""

    if value is not None and not value.strip():
        raise ValueError("must contain non-whitespace characters")
    return value


class MovieCreate(BaseModel):
    """Payload accepted when creating a catalog entry by hand."""

    title: str = Field(..., min_length=1, description="Film title, unique regardless of case.")
    episode_number: int = Field(..., description="Episode number, unique across the catalog.")
    director: str = Field(..., min_length=1)
    producer: str = Field(..., min_length=1)
    release_date: str = Field(..., min_length=1, description="Release date, e.g. 1977-05-25.")
    opening_text: str | None = Field(default=None, description="Optional opening crawl text.")

    @field_validator("title", "director", "producer", "release_date")
    @classmethod
    def reject_blank_text(cls, value: str | None) -> str | None:
        return _require_text(value)


class MovieUpdate(BaseModel):
    """Partial update; fields left unset keep their stored value."""

    title: str | None = Field(default=None, min_length=1)
    episode_number: int | None = Field(default=None)
    director: str | None = Field(default=None, min_length=1)
    producer: str | None = Field(default=None, min_length=1)
    release_date: str | None = Field(default=None, min_length=1)
    opening_text: str | None = Field(default=None)

    @field_validator("title", "director", "producer", "release_date")
    @classmethod
    def reject_blank_text(cls, value: str | None) -> str | None:
        return _require_text(value)


class MovieModel(BaseModel):
    """Catalog entry as returned to API callers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    external_id: str = Field(description="Feed identifier, or manual-entry for API-created rows.")
    title: str
    episode_number: int
    director: str
    producer: str
    release_date: str
    opening_text: str | None = None
    created_at: datetime
    updated_at: datetime


MovieSortField = Literal[
    "episode_number",
    "title",
    "director",
    "producer",
    "release_date",
    "created_at",
    "updated_at",
]


class MovieListQuery(BaseModel):
    """Paging, ordering and search parameters for catalog listings."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: MovieSortField = Field(default="episode_number")
    sort_order: Literal["asc", "desc"] = Field(default="asc")
    search: str | None = Field(default=None)


class PageMetaModel(BaseModel):
    """Pagination metadata accompanying a page of movies."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class MoviePageModel(BaseModel):
    """Paginated response envelope for catalog listings."""

    data: list[MovieModel]
    meta: PageMetaModel


class MessageModel(BaseModel):
    """Human-readable confirmation message."""

    message: str


class SyncSummaryModel(BaseModel):
    """Outcome of a reconciliation pass."""

    message: str = Field(default="Movies synced successfully")
    synced: int = Field(description="Entries inserted during the pass.")
    skipped: int = Field(description="Entries already present in the catalog.")
    total: int = Field(description="Number of entries in the feed, malformed ones included.")
    run_id: str | None = Field(default=None, description="Identifier of the recorded sync run.")


SyncRunStatus = Literal["queued", "running", "completed", "failed"]


class SyncRunModel(BaseModel):
    """Represents a recorded reconciliation run."""

    id: str
    trigger: Literal["manual", "scheduled"]
    status: SyncRunStatus
    synced: int
    skipped: int
    total: int
    worker_id: str | None = Field(
        default=None, description="Identifier for the worker that executed the run."
    )
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error_message: str | None = None
    duration_seconds: float | None = Field(
        default=None,
        description="Execution duration calculated from started and finished timestamps.",
    )


SyncRunLogLevel = Literal["debug", "info", "warning", "error"]


class SyncRunLogCreate(BaseModel):
    """Payload used to append a new sync run log entry."""

    level: SyncRunLogLevel = Field(
        default="info", description="Severity level of the log entry."
    )
    message: str = Field(..., description="Human-readable log message.")
    context: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured context payload for the log entry.",
    )


class SyncRunLogModel(SyncRunLogCreate):
    """Represents a persisted sync run log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    run_id: str
    created_at: datetime
