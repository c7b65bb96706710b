"""Shared lifecycle for recorded reconciliation runs."""
from __future__ import annotations

import logging

from ..errors import SyncFailedError
from ..schemas import SyncRunLogCreate, SyncSummaryModel
from ..stores.movie_store import MovieStore
from ..stores.sync_run_log_store import SyncRunLogStore
from ..stores.sync_run_store import SyncRunStore
from .reconciler import FeedSource, Reconciler

logger = logging.getLogger(__name__)


def run_reconciliation(
    movie_store: MovieStore,
    run_store: SyncRunStore,
    log_store: SyncRunLogStore,
    feed: FeedSource,
    *,
    trigger: str = "manual",
    run_id: str | None = None,
    worker_id: str = "catalog-api",
) -> SyncSummaryModel:
    """Execute a reconciliation pass and record it as a sync run.

    The inline ``POST /movies/sync`` endpoint and the queued worker task both go
    through here, so a pass always leaves a run record with its counters or its
    failure message. ``run_id`` refers to a run created earlier by the queue;
    without it a new run is recorded.
    """

    if run_id is None:
        run_id = run_store.enqueue(trigger).id
    run_store.mark_running(run_id, worker_id=worker_id)
    log_store.append(
        run_id,
        SyncRunLogCreate(level="info", message="Sync run started", context={"trigger": trigger}),
    )

    reconciler = Reconciler(
        store=movie_store,
        feed=feed,
        log_event=lambda payload: log_store.append(run_id, payload),
    )
    try:
        summary = reconciler.reconcile()
    except Exception as exc:
        if isinstance(exc, SyncFailedError):
            logger.error("Sync run %s failed: %s", run_id, exc)
        else:
            logger.exception("Sync run %s crashed", run_id)
        run_store.mark_failed(run_id, error_message=str(exc))
        log_store.append(
            run_id,
            SyncRunLogCreate(level="error", message="Sync run failed", context={"error": str(exc)}),
        )
        raise

    summary = summary.model_copy(update={"run_id": run_id})
    run_store.mark_completed(run_id, summary)
    log_store.append(
        run_id,
        SyncRunLogCreate(
            level="info",
            message="Sync run completed",
            context={"synced": summary.synced, "skipped": summary.skipped, "total": summary.total},
        ),
    )
    return summary
