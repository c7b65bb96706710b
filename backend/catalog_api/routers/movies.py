"""Movie catalog endpoints."""
from typing import Literal

from fastapi import APIRouter, Depends, Query

from ..auth import Principal
from ..dependencies import get_catalog_service, get_principal
from ..schemas import (
    MessageModel,
    MovieCreate,
    MovieListQuery,
    MovieModel,
    MoviePageModel,
    MovieSortField,
    MovieUpdate,
    SyncSummaryModel,
)
from ..services.catalog_service import CatalogService

router = APIRouter(prefix="/movies", tags=["movies"])


@router.get("", response_model=MoviePageModel)
def list_movies(
    page: int = Query(default=1, ge=1, description="Page number starting at 1."),
    limit: int = Query(default=10, ge=1, le=100, description="Number of movies per page."),
    sort_by: MovieSortField = Query(default="episode_number", description="Field to sort by."),
    sort_order: Literal["asc", "desc"] = Query(default="asc", description="Sort direction."),
    search: str | None = Query(
        default=None,
        description="Case-insensitive search term matched against title, director or producer.",
    ),
    _principal: Principal = Depends(get_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> MoviePageModel:
    """Return a page of movies matching the optional search term."""

    query = MovieListQuery(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search,
    )
    return service.list_paginated(query)


@router.get("/all", response_model=list[MovieModel])
def list_all_movies(
    _principal: Principal = Depends(get_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> list[MovieModel]:
    """Return every movie ordered by episode number."""

    return service.list_all()


@router.post("/sync", response_model=SyncSummaryModel)
def sync_movies(
    principal: Principal = Depends(get_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> SyncSummaryModel:
    """Reconcile the catalog with the external feed (admin only)."""

    return service.reconcile(principal=principal)


@router.get("/{movie_id}", response_model=MovieModel)
def get_movie(
    movie_id: str,
    _principal: Principal = Depends(get_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> MovieModel:
    return service.get(movie_id)


@router.post("", response_model=MovieModel, status_code=201)
def create_movie(
    payload: MovieCreate,
    principal: Principal = Depends(get_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> MovieModel:
    """Create a movie by hand (admin only)."""

    return service.create(payload, principal=principal)


@router.patch("/{movie_id}", response_model=MovieModel)
def update_movie(
    movie_id: str,
    payload: MovieUpdate,
    principal: Principal = Depends(get_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> MovieModel:
    """Apply a partial update to a movie (admin only)."""

    return service.update(movie_id, payload, principal=principal)


@router.delete("/{movie_id}", response_model=MessageModel)
def delete_movie(
    movie_id: str,
    principal: Principal = Depends(get_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> MessageModel:
    """Delete a movie (admin only)."""

    return service.delete(movie_id, principal=principal)
