"""Public facade over the catalog consistency and reconciliation logic."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..auth import Principal, require_admin
from ..errors import MovieConflictError, MovieNotFoundError
from ..schemas import (
    MessageModel,
    MovieCreate,
    MovieListQuery,
    MovieModel,
    MoviePageModel,
    MovieUpdate,
    SyncSummaryModel,
)
from ..stores.movie_store import MovieStore
from ..stores.sync_run_log_store import SyncRunLogStore
from ..stores.sync_run_store import SyncRunStore
from .query_planner import execute_page
from .reconciler import FeedSource
from .sync_runner import run_reconciliation
from .uniqueness import UniquenessGuard

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = frozenset({"opening_text"})


@dataclass(slots=True)
class CatalogService:
    """Entry point used by the HTTP layer for every catalog operation.

    Mutations and reconciliation require an ADMIN principal. Uniqueness checks
    always run before the write; the database indexes back them up when
    concurrent writers race past the checks.
    """

    store: MovieStore
    run_store: SyncRunStore
    log_store: SyncRunLogStore
    feed: FeedSource

    @property
    def guard(self) -> UniquenessGuard:
        return UniquenessGuard(self.store)

    def create(self, payload: MovieCreate, *, principal: Principal) -> MovieModel:
        require_admin(principal)
        if self.guard.check_title(payload.title) is not None:
            raise MovieConflictError.for_title(payload.title)
        if self.guard.check_episode(payload.episode_number) is not None:
            raise MovieConflictError.for_episode(payload.episode_number)

        movie = self.store.create(**payload.model_dump())
        logger.info("Movie %s created by %s", movie.id, principal.subject)
        return movie

    def update(self, movie_id: str, payload: MovieUpdate, *, principal: Principal) -> MovieModel:
        require_admin(principal)
        existing = self.get(movie_id)
        patch = _extract_patch(payload)

        title = patch.get("title")
        if title is not None and title != existing.title:
            if self.guard.check_title(title, exclude_id=movie_id) is not None:
                raise MovieConflictError.for_title(title)

        episode_number = patch.get("episode_number")
        if episode_number is not None and episode_number != existing.episode_number:
            if self.guard.check_episode(episode_number, exclude_id=movie_id) is not None:
                raise MovieConflictError.for_episode(episode_number)

        if not patch:
            return existing
        movie = self.store.update(movie_id, patch)
        logger.info("Movie %s updated by %s: %s", movie_id, principal.subject, sorted(patch))
        return movie

    def delete(self, movie_id: str, *, principal: Principal) -> MessageModel:
        require_admin(principal)
        self.get(movie_id)
        self.store.delete(movie_id)
        logger.info("Movie %s deleted by %s", movie_id, principal.subject)
        return MessageModel(message=f"Movie with ID {movie_id} has been deleted")

    def get(self, movie_id: str) -> MovieModel:
        movie = self.store.get(movie_id)
        if movie is None:
            raise MovieNotFoundError(movie_id)
        return movie

    def list_all(self) -> list[MovieModel]:
        return self.store.list_all()

    def list_paginated(self, query: MovieListQuery) -> MoviePageModel:
        return execute_page(self.store, query)

    def reconcile(self, *, principal: Principal) -> SyncSummaryModel:
        require_admin(principal)
        logger.info("Manual sync requested by %s", principal.subject)
        return run_reconciliation(
            self.store,
            self.run_store,
            self.log_store,
            self.feed,
            trigger="manual",
        )


def _extract_patch(update: MovieUpdate) -> dict[str, Any]:
    """Keep explicitly supplied fields; null only clears nullable columns."""

    payload = update.model_dump(exclude_unset=True)
    return {
        key: value
        for key, value in payload.items()
        if value is not None or key in NULLABLE_FIELDS
    }
