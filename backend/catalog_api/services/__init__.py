"""Service layer for catalog consistency and feed reconciliation."""

from .catalog_service import CatalogService
from .feed_client import FeedClient
from .query_planner import PagePlan, build_page, plan_page
from .reconciler import (
    IgnoreEntry,
    InsertEntry,
    Reconciler,
    SkipEntry,
    decide_entry,
    extract_entries,
)
from .sync_runner import run_reconciliation
from .uniqueness import UniquenessGuard

__all__ = [
    "CatalogService",
    "FeedClient",
    "IgnoreEntry",
    "InsertEntry",
    "PagePlan",
    "Reconciler",
    "SkipEntry",
    "UniquenessGuard",
    "build_page",
    "decide_entry",
    "extract_entries",
    "plan_page",
    "run_reconciliation",
]
