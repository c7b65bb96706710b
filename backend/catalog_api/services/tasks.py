"""RQ task entrypoints executed by background workers."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from rq import Queue, get_current_job

from ..db import create_engine_from_settings, init_database
from ..errors import SyncFailedError
from ..schemas import SyncRunLogCreate
from ..settings import CatalogSettings
from ..stores.movie_store import MovieStore
from ..stores.sync_run_log_store import SyncRunLogStore
from ..stores.sync_run_store import SyncRunStore
from .feed_client import FeedClient
from .sync_runner import run_reconciliation

logger = logging.getLogger(__name__)


def execute_sync_run(
    *,
    run_id: str | None,
    trigger: str,
    settings: dict[str, Any],
    worker_name: str,
) -> dict[str, Any] | None:
    """Background worker entrypoint for reconciliation runs.

    Scheduled runs first fail runs that stopped making progress, are skipped
    while another run is queued or running, and always book the next scheduled
    run before returning.
    """

    resolved_settings = CatalogSettings.model_validate(settings)
    engine = create_engine_from_settings(resolved_settings)
    init_database(engine)
    run_store = SyncRunStore(engine)
    log_store = SyncRunLogStore(engine)

    current_job = get_current_job()
    worker_id = worker_name
    if current_job and getattr(current_job, "worker_name", None):  # pragma: no cover - runtime path
        worker_id = current_job.worker_name  # type: ignore[assignment]

    try:
        if trigger == "scheduled":
            _expire_stale_runs(run_store, log_store, resolved_settings, run_id)
            if run_store.has_active(exclude_id=run_id):
                logger.warning("Scheduled sync skipped: another run is in flight")
                return None

        summary = run_reconciliation(
            MovieStore(engine),
            run_store,
            log_store,
            FeedClient(resolved_settings.feed_url, timeout=resolved_settings.feed_timeout),
            trigger=trigger,
            run_id=run_id,
            worker_id=worker_id,
        )
        return summary.model_dump()
    except SyncFailedError:
        if trigger == "scheduled":
            # the next scheduled pass is the retry
            return None
        raise
    finally:
        if trigger == "scheduled":
            _reschedule(current_job, resolved_settings)
        engine.dispose()


def _expire_stale_runs(
    run_store: SyncRunStore,
    log_store: SyncRunLogStore,
    settings: CatalogSettings,
    run_id: str | None,
) -> None:
    older_than = timedelta(minutes=settings.sync_stale_after_minutes)
    for run in run_store.fail_stale(older_than, exclude_id=run_id):
        logger.warning("Sync run %s marked failed: %s", run.id, run.error_message)
        log_store.append(
            run.id,
            SyncRunLogCreate(
                level="error",
                message="Sync run abandoned",
                context={"error": run.error_message},
            ),
        )


def _reschedule(current_job, settings: CatalogSettings) -> None:
    from .queue import SyncQueueService, schedule_sync

    if current_job is not None:
        queue = Queue(current_job.origin, connection=current_job.connection)
        job = schedule_sync(queue, settings)
    else:
        job = SyncQueueService(settings).schedule_next()
    logger.info("Next scheduled sync booked as job %s", job.id)
