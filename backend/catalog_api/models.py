"""Database models for the Catalog API."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, DateTime, Index, text
from sqlmodel import Field, SQLModel

MANUAL_ENTRY = "manual-entry"

_REAL_EXTERNAL_ID = text(f"external_id != '{MANUAL_ENTRY}'")


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""

    return datetime.now(timezone.utc)


class MovieRecord(SQLModel, table=True):
    """Persisted catalog entry.

    ``title_key`` holds the trimmed, lower-cased title so uniqueness is
    enforced by the database as well as by the service layer. Search
    matches against ``title_key``, ``director_key`` and ``producer_key``,
    which are folded in Python rather than by the database.
    """

    __tablename__ = "catalog_movies"
    __table_args__ = (
        Index(
            "ux_catalog_movies_external_id",
            "external_id",
            unique=True,
            sqlite_where=_REAL_EXTERNAL_ID,
            postgresql_where=_REAL_EXTERNAL_ID,
        ),
    )

    id: str = Field(primary_key=True, index=True)
    external_id: str = Field(default=MANUAL_ENTRY)
    title: str
    title_key: str = Field(unique=True, index=True)
    episode_number: int = Field(unique=True, index=True)
    director: str = Field(index=True)
    producer: str
    director_key: str = Field(default="", index=True)
    producer_key: str = Field(default="", index=True)
    release_date: str
    opening_text: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False
    )


class SyncRunRecord(SQLModel, table=True):
    """A single reconciliation pass against the external feed."""

    __tablename__ = "catalog_sync_runs"

    id: str = Field(primary_key=True, index=True)
    trigger: str = Field(default="manual", index=True)
    status: str = Field(default="queued", index=True)
    synced: int = Field(default=0)
    skipped: int = Field(default=0)
    total: int = Field(default=0)
    worker_id: str | None = Field(default=None)
    started_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True), index=True
    )
    finished_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True), index=True
    )
    error_message: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False
    )


class SyncRunLogRecord(SQLModel, table=True):
    """Structured log event associated with a sync run."""

    __tablename__ = "catalog_sync_run_logs"

    id: int | None = Field(default=None, primary_key=True)
    run_id: str = Field(index=True)
    level: str = Field(default="info", index=True)
    message: str
    context: dict[str, Any] | None = Field(
        default=None, sa_column=Column(JSON, nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), index=True
    )
