"""Error taxonomy shared by the catalog services and the HTTP layer."""
from __future__ import annotations


class CatalogError(RuntimeError):
    """Base class for failures surfaced to catalog callers."""

    category = "Catalog Error"


class MovieConflictError(CatalogError):
    """Raised when a write would duplicate a title or an episode number."""

    category = "Conflict"

    @classmethod
    def for_title(cls, title: str) -> "MovieConflictError":
        return cls(f'Movie with title "{title}" already exists')

    @classmethod
    def for_episode(cls, episode_number: int) -> "MovieConflictError":
        return cls(f"Movie with episode number {episode_number} already exists")


class MovieNotFoundError(CatalogError):
    """Raised when a referenced movie id does not exist."""

    category = "Not Found"

    def __init__(self, movie_id: str) -> None:
        super().__init__(f"Movie with ID {movie_id} not found")
        self.movie_id = movie_id


class SyncFailedError(CatalogError):
    """Raised when the external feed cannot be fetched or parsed."""

    category = "Sync Failed"
    prefix = "Failed to sync movies: "

    def __init__(self, reason: str) -> None:
        super().__init__(f"{self.prefix}{reason}")
        self.reason = reason


class PermissionDeniedError(CatalogError):
    """Raised when a principal lacks the role required for an operation."""

    category = "Forbidden"
