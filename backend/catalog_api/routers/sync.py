"""Background reconciliation run endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import Principal, require_admin
from ..dependencies import get_log_store, get_principal, get_run_store, get_sync_queue
from ..schemas import SyncRunLogLevel, SyncRunLogModel, SyncRunModel
from ..services.queue import SyncQueueError, SyncQueueService
from ..stores.sync_run_log_store import SyncRunLogStore
from ..stores.sync_run_store import SyncRunStore

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("/runs", response_model=SyncRunModel, status_code=202)
def enqueue_sync_run(
    principal: Principal = Depends(get_principal),
    store: SyncRunStore = Depends(get_run_store),
    log_store: SyncRunLogStore = Depends(get_log_store),
    queue: SyncQueueService = Depends(get_sync_queue),
) -> SyncRunModel:
    """Enqueue a reconciliation run for asynchronous execution (admin only)."""

    require_admin(principal)
    try:
        return queue.enqueue_run(store, log_store)
    except SyncQueueError as exc:  # pragma: no cover - queue failures
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/runs", response_model=list[SyncRunModel])
def list_sync_runs(
    limit: int = Query(default=20, ge=1, le=100),
    statuses: Annotated[
        list[str] | None,
        Query(
            alias="status",
            description=(
                "Filter results to one or more run statuses. Repeat the query parameter "
                "to include multiple statuses."
            ),
        ),
    ] = None,
    _principal: Principal = Depends(get_principal),
    store: SyncRunStore = Depends(get_run_store),
) -> list[SyncRunModel]:
    """Return the most recent reconciliation runs."""

    return store.list(limit=limit, statuses=statuses)


@router.get("/runs/{run_id}", response_model=SyncRunModel)
def get_sync_run(
    run_id: str,
    _principal: Principal = Depends(get_principal),
    store: SyncRunStore = Depends(get_run_store),
) -> SyncRunModel:
    run = store.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Sync run not found")
    return run


@router.get("/runs/{run_id}/logs", response_model=list[SyncRunLogModel])
def list_sync_run_logs(
    run_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    levels: Annotated[
        list[SyncRunLogLevel] | None,
        Query(
            alias="level",
            description="Only return events with these severities. Repeat to include several.",
        ),
    ] = None,
    _principal: Principal = Depends(get_principal),
    store: SyncRunStore = Depends(get_run_store),
    log_store: SyncRunLogStore = Depends(get_log_store),
) -> list[SyncRunLogModel]:
    """Return log events recorded for a run."""

    if store.get(run_id) is None:
        raise HTTPException(status_code=404, detail="Sync run not found")
    return log_store.list_for_run(run_id, limit=limit, levels=levels)
