"""Typer CLI for the Movie Catalog API."""
from .app import app

__all__ = ["app"]
