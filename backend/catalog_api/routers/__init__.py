"""Router exports for the Catalog API."""
from . import health, movies, sync

__all__ = ["health", "movies", "sync"]
