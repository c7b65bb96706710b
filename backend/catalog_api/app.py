"""Application factory for the Movie Catalog API."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import (
    CatalogError,
    MovieConflictError,
    MovieNotFoundError,
    PermissionDeniedError,
    SyncFailedError,
)
from .routers import health, movies, sync
from .settings import CatalogSettings
from .state import AppState

ERROR_STATUS_CODES: dict[type[CatalogError], int] = {
    MovieConflictError: 409,
    MovieNotFoundError: 404,
    PermissionDeniedError: 403,
    SyncFailedError: 502,
}


async def handle_catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
    """Render catalog failures as ``{"error": <category>, "detail": <message>}``."""

    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.category, "detail": str(exc)},
    )


def create_app(settings: CatalogSettings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""

    resolved_settings = settings or CatalogSettings()
    app_state = AppState(settings=resolved_settings)

    app = FastAPI(title="Movie Catalog API", version="0.1.0")
    app.state.app_state = app_state
    app.state.settings = app_state.settings
    app.add_exception_handler(CatalogError, handle_catalog_error)

    for router in (health.router, movies.router, sync.router):
        app.include_router(router)

    return app
