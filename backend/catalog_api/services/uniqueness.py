"""Read-only checks for the catalog's title and episode uniqueness rules."""
from __future__ import annotations

from dataclasses import dataclass

from ..schemas import MovieModel
from ..stores.movie_store import MovieFilter, MovieStore, normalize_title


@dataclass(slots=True)
class UniquenessGuard:
    """Look up records that would collide with a candidate title or episode.

    Both checks return the conflicting movie, or ``None`` when the candidate is
    free. Passing ``exclude_id`` lets a record keep its own current value.
    """

    store: MovieStore

    def check_title(self, candidate: str, *, exclude_id: str | None = None) -> MovieModel | None:
        return self.store.find_one(
            MovieFilter(title_key=normalize_title(candidate), exclude_id=exclude_id)
        )

    def check_episode(self, candidate: int, *, exclude_id: str | None = None) -> MovieModel | None:
        return self.store.find_one(
            MovieFilter(episode_number=candidate, exclude_id=exclude_id)
        )
