"""FastAPI dependencies for the Catalog API."""
from fastapi import Depends, HTTPException, Request

from .auth import Principal, Role
from .services.catalog_service import CatalogService
from .services.queue import SyncQueueService
from .state import AppState
from .stores.sync_run_log_store import SyncRunLogStore
from .stores.sync_run_store import SyncRunStore


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_principal(request: Request, app_state: AppState = Depends(get_app_state)) -> Principal:
    """Read the principal and role claim forwarded by the authenticating gateway."""

    settings = app_state.settings
    subject = request.headers.get(settings.principal_header)
    if not subject:
        raise HTTPException(status_code=401, detail="Unauthorized")
    raw_role = (request.headers.get(settings.role_header) or Role.USER.value).upper()
    try:
        role = Role(raw_role)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=f"Unknown role claim {raw_role}") from exc
    return Principal(subject=subject, role=role)


def get_catalog_service(app_state: AppState = Depends(get_app_state)) -> CatalogService:
    """Compose the catalog facade from the shared stores."""
    return CatalogService(
        store=app_state.movie_store,
        run_store=app_state.run_store,
        log_store=app_state.log_store,
        feed=app_state.feed_client,
    )


def get_run_store(app_state: AppState = Depends(get_app_state)) -> SyncRunStore:
    return app_state.run_store


def get_log_store(app_state: AppState = Depends(get_app_state)) -> SyncRunLogStore:
    return app_state.log_store


def get_sync_queue(app_state: AppState = Depends(get_app_state)) -> SyncQueueService:
    return app_state.sync_queue
