"""Entry point for running the catalog RQ worker and its daily sync schedule."""
from __future__ import annotations

import logging
import os

from rq import SimpleWorker, Worker

from backend.catalog_api.services.queue import SyncQueueService
from backend.catalog_api.settings import CatalogSettings

logger = logging.getLogger(__name__)


def seed_schedule(queue_service: SyncQueueService) -> bool:
    """Book the first scheduled sync unless one is already waiting."""

    if queue_service.has_scheduled():
        return False
    job = queue_service.schedule_next()
    logger.info("Scheduled reconciliation booked as job %s", job.id)
    return True


def main() -> None:
    """Start an RQ worker connected to the configured catalog queue."""

    logging.basicConfig(level=logging.INFO)
    settings = CatalogSettings()
    queue_service = SyncQueueService(settings)
    seed_schedule(queue_service)

    # Use SimpleWorker on Windows to avoid fork issues
    worker_class = SimpleWorker if os.name == 'nt' else Worker
    worker = worker_class(
        [queue_service.queue],
        connection=queue_service.connection,
        name=settings.queue_worker_name,
    )
    worker.work(with_scheduler=True)


if __name__ == "__main__":  # pragma: no cover - manual entrypoint
    main()
