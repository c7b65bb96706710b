"""Database-backed store for reconciliation run metadata."""
from __future__ import annotations

from datetime import datetime, timedelta
from threading import Lock
from typing import Iterable
from uuid import uuid4

from sqlalchemy import func
from sqlmodel import Session, select

from ..models import SyncRunRecord, utcnow
from ..schemas import SyncRunModel, SyncSummaryModel

ACTIVE_STATUSES = ("queued", "running")


class SyncRunNotFoundError(LookupError):
    """Raised when a sync run identifier is unknown."""


class SyncRunStore:
    """Thread-safe CRUD interface for sync runs."""

    def __init__(self, engine) -> None:
        self._engine = engine
        self._lock = Lock()

    def enqueue(self, trigger: str = "manual") -> SyncRunModel:
        """Create a queued run entry and return its model representation."""

        record = SyncRunRecord(id=uuid4().hex, trigger=trigger, status="queued")
        with self._lock, Session(self._engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return _to_model(record)

    def list(
        self,
        *,
        limit: int = 50,
        statuses: list[str] | None = None,
    ) -> list[SyncRunModel]:
        """Return the most recent runs up to the requested limit."""

        statement = select(SyncRunRecord)
        if statuses:
            normalized_statuses = sorted({status.lower() for status in statuses if status})
            if normalized_statuses:
                statement = statement.where(SyncRunRecord.status.in_(normalized_statuses))

        statement = statement.order_by(SyncRunRecord.created_at.desc()).limit(limit)
        with Session(self._engine) as session:
            records: Iterable[SyncRunRecord] = session.exec(statement)
            return [_to_model(record) for record in records]

    def get(self, run_id: str) -> SyncRunModel | None:
        with Session(self._engine) as session:
            record = session.get(SyncRunRecord, run_id)
            return _to_model(record) if record else None

    def has_active(self, *, exclude_id: str | None = None) -> bool:
        """Whether another run is queued or running."""

        statement = (
            select(func.count())
            .select_from(SyncRunRecord)
            .where(SyncRunRecord.status.in_(ACTIVE_STATUSES))
        )
        if exclude_id is not None:
            statement = statement.where(SyncRunRecord.id != exclude_id)
        with Session(self._engine) as session:
            return session.exec(statement).one() > 0

    def fail_stale(
        self,
        older_than: timedelta,
        *,
        exclude_id: str | None = None,
    ) -> list[SyncRunModel]:
        """Fail queued or running runs that have not been updated for ``older_than``.

        A run whose worker died mid-pass never reaches a final status on its own.
        """

        cutoff = utcnow() - older_than
        statement = (
            select(SyncRunRecord.id, SyncRunRecord.updated_at)
            .where(SyncRunRecord.status.in_(ACTIVE_STATUSES))
            .where(SyncRunRecord.updated_at < cutoff)
        )
        if exclude_id is not None:
            statement = statement.where(SyncRunRecord.id != exclude_id)
        with Session(self._engine) as session:
            stale = session.exec(statement).all()

        return [
            self.mark_failed(
                run_id,
                error_message=(
                    f"Sync run abandoned: no progress since {updated_at:%Y-%m-%d %H:%M:%S}"
                ),
            )
            for run_id, updated_at in stale
        ]

    def mark_running(self, run_id: str, *, worker_id: str | None = None) -> SyncRunModel:
        return self._update_run(
            run_id,
            status="running",
            started_at=utcnow(),
            worker_id=worker_id,
        )

    def mark_completed(self, run_id: str, summary: SyncSummaryModel) -> SyncRunModel:
        return self._update_run(
            run_id,
            status="completed",
            finished_at=utcnow(),
            summary=summary,
        )

    def mark_failed(self, run_id: str, *, error_message: str) -> SyncRunModel:
        return self._update_run(
            run_id,
            status="failed",
            finished_at=utcnow(),
            error_message=error_message,
        )

    def _update_run(
        self,
        run_id: str,
        *,
        status: str,
        started_at: datetime | None = None,
        finished_at: datetime | None = None,
        error_message: str | None = None,
        worker_id: str | None = None,
        summary: SyncSummaryModel | None = None,
    ) -> SyncRunModel:
        with self._lock, Session(self._engine) as session:
            record = session.get(SyncRunRecord, run_id)
            if record is None:
                raise SyncRunNotFoundError(f"Sync run {run_id} not found")

            record.status = status
            if started_at is not None and record.started_at is None:
                record.started_at = started_at
            if finished_at is not None:
                record.finished_at = finished_at
            if error_message is not None:
                record.error_message = error_message
            if worker_id is not None:
                record.worker_id = worker_id
            if summary is not None:
                record.synced = summary.synced
                record.skipped = summary.skipped
                record.total = summary.total
            record.updated_at = utcnow()

            session.add(record)
            session.commit()
            session.refresh(record)
            return _to_model(record)


def _to_model(record: SyncRunRecord) -> SyncRunModel:
    """Convert a SyncRunRecord into the public response model."""

    duration_seconds: float | None = None
    if record.started_at and record.finished_at:
        duration_seconds = (record.finished_at - record.started_at).total_seconds()

    return SyncRunModel(
        id=record.id,
        trigger=record.trigger,
        status=record.status,
        synced=record.synced,
        skipped=record.skipped,
        total=record.total,
        worker_id=record.worker_id,
        created_at=record.created_at,
        updated_at=record.updated_at,
        started_at=record.started_at,
        finished_at=record.finished_at,
        error_message=record.error_message,
        duration_seconds=duration_seconds,
    )
