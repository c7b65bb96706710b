"""Per-run event trail written while a reconciliation pass executes."""
from __future__ import annotations

from typing import Iterable, Sequence

from sqlmodel import Session, select

from ..models import SyncRunLogRecord
from ..schemas import SyncRunLogCreate, SyncRunLogLevel, SyncRunLogModel


class SyncRunLogStore:
    """Append events to a sync run and read them back, optionally by severity.

    Ignored feed entries are written as ``warning`` events and pass failures as
    ``error`` events, so filtering on those levels isolates what an operator
    has to look at after a run.
    """

    def __init__(self, engine) -> None:
        self._engine = engine

    def append(self, run_id: str, event: SyncRunLogCreate) -> SyncRunLogModel:
        record = SyncRunLogRecord(run_id=run_id, **event.model_dump())
        with Session(self._engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return SyncRunLogModel.model_validate(record)

    def list_for_run(
        self,
        run_id: str,
        *,
        limit: int = 100,
        levels: Sequence[SyncRunLogLevel] | None = None,
    ) -> list[SyncRunLogModel]:
        """Return the run's events in the order they were written."""

        statement = select(SyncRunLogRecord).where(SyncRunLogRecord.run_id == run_id)
        if levels:
            statement = statement.where(SyncRunLogRecord.level.in_(sorted(set(levels))))
        statement = statement.order_by(SyncRunLogRecord.id.asc()).limit(limit)
        with Session(self._engine) as session:
            records: Iterable[SyncRunLogRecord] = session.exec(statement)
            return [SyncRunLogModel.model_validate(record) for record in records]
