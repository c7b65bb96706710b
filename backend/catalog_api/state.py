"""Shared state container for the Catalog API."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from .db import create_engine_from_settings, init_database
from .services.feed_client import FeedClient
from .services.queue import SyncQueueService
from .services.reconciler import FeedSource
from .settings import CatalogSettings
from .stores.movie_store import MovieStore
from .stores.sync_run_log_store import SyncRunLogStore
from .stores.sync_run_store import SyncRunStore


@dataclass(slots=True)
class AppState:
    """Encapsulates the stores and clients shared across routers."""

    settings: CatalogSettings
    engine: Engine
    movie_store: MovieStore
    run_store: SyncRunStore
    log_store: SyncRunLogStore
    feed_client: FeedSource
    sync_queue: SyncQueueService

    def __init__(self, settings: CatalogSettings) -> None:
        self.settings = settings
        self.engine = create_engine_from_settings(settings)
        init_database(self.engine)
        self.movie_store = MovieStore(self.engine)
        self.run_store = SyncRunStore(self.engine)
        self.log_store = SyncRunLogStore(self.engine)
        self.feed_client = FeedClient(settings.feed_url, timeout=settings.feed_timeout)
        self.sync_queue = SyncQueueService(settings)
