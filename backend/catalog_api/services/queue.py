"""Redis-backed queue for background and scheduled reconciliation runs."""
from __future__ import annotations

from datetime import timedelta

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue
from rq.job import Job

try:  # pragma: no cover - optional dependency for test environments
    import fakeredis
except ModuleNotFoundError:  # pragma: no cover - runtime path without fakeredis
    fakeredis = None  # type: ignore[assignment]

from ..schemas import SyncRunLogCreate, SyncRunModel
from ..settings import CatalogSettings
from ..stores.sync_run_log_store import SyncRunLogStore
from ..stores.sync_run_store import SyncRunStore
from .tasks import execute_sync_run


class SyncQueueError(RuntimeError):
    """Raised when the queue cannot accept a run."""


def schedule_sync(queue: Queue, settings: CatalogSettings, delay: timedelta | None = None) -> Job:
    """Enqueue a scheduled reconciliation to start after ``delay``."""

    delay = delay if delay is not None else timedelta(hours=settings.sync_interval_hours)
    return queue.enqueue_in(
        delay,
        execute_sync_run,
        kwargs={
            "run_id": None,
            "trigger": "scheduled",
            "settings": settings.model_dump(),
            "worker_name": settings.queue_worker_name,
        },
    )


class SyncQueueService:
    """Encapsulates the Redis queue connection and enqueue workflow."""

    def __init__(self, settings: CatalogSettings) -> None:
        self._settings = settings
        self._connection = self._create_connection(settings)
        self._queue = Queue(settings.redis_queue_name, connection=self._connection)

    @staticmethod
    def _create_connection(settings: CatalogSettings) -> Redis:
        """Instantiate a Redis connection, supporting fakeredis for tests."""

        url = settings.redis_url
        if url.startswith("fakeredis://"):
            if fakeredis is None:  # pragma: no cover - safety branch
                msg = "fakeredis is required for fakeredis:// URLs"
                raise SyncQueueError(msg)
            return fakeredis.FakeRedis()  # type: ignore[return-value]
        return Redis.from_url(url)

    @property
    def queue(self) -> Queue:
        """Expose the underlying RQ queue for workers and diagnostics."""

        return self._queue

    @property
    def connection(self) -> Redis:
        return self._connection

    def ping(self) -> bool:
        """Check whether the queue backend is reachable."""

        try:
            return bool(self._connection.ping())
        except RedisError:
            return False

    def enqueue_run(self, run_store: SyncRunStore, log_store: SyncRunLogStore) -> SyncRunModel:
        """Persist a manual run and enqueue it for asynchronous execution."""

        run = run_store.enqueue("manual")
        log_store.append(run.id, SyncRunLogCreate(level="info", message="Sync run enqueued", context=None))

        try:
            self._queue.enqueue(
                execute_sync_run,
                job_id=run.id,
                kwargs={
                    "run_id": run.id,
                    "trigger": "manual",
                    "settings": self._settings.model_dump(),
                    "worker_name": self._settings.queue_worker_name,
                },
            )
        except RedisError as exc:  # pragma: no cover - failure path
            log_store.append(
                run.id,
                SyncRunLogCreate(
                    level="error",
                    message="Failed to enqueue sync run",
                    context={"error": str(exc)},
                ),
            )
            run_store.mark_failed(run.id, error_message="queue_unavailable")
            raise SyncQueueError("Unable to enqueue sync run") from exc

        return run

    def has_scheduled(self) -> bool:
        """Whether a scheduled run is already waiting in the registry."""

        return len(self._queue.scheduled_job_registry) > 0

    def schedule_next(self, delay: timedelta | None = None) -> Job:
        return schedule_sync(self._queue, self._settings, delay)
