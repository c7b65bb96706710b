"""Translate listing requests into store queries and response envelopes."""
from __future__ import annotations

import math
from dataclasses import dataclass

from ..schemas import MovieListQuery, MovieModel, MoviePageModel, PageMetaModel
from ..stores.movie_store import MovieFilter, MovieSort, MovieStore


@dataclass(frozen=True, slots=True)
class PagePlan:
    """Store-level filter, ordering and window for one listing page."""

    movie_filter: MovieFilter
    sort: MovieSort
    offset: int
    limit: int


def plan_page(query: MovieListQuery) -> PagePlan:
    search = query.search.strip() if query.search else None
    return PagePlan(
        movie_filter=MovieFilter(search=search or None),
        sort=MovieSort(field=query.sort_by, direction=query.sort_order),
        offset=(query.page - 1) * query.limit,
        limit=query.limit,
    )


def build_page(query: MovieListQuery, rows: list[MovieModel], total: int) -> MoviePageModel:
    """Wrap a window of rows with pagination metadata.

    Pages past the end yield an empty ``data`` list; ``has_previous`` is still
    derived from the requested page number.
    """

    total_pages = math.ceil(total / query.limit) if total else 0
    return MoviePageModel(
        data=rows,
        meta=PageMetaModel(
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=total_pages,
            has_next=query.page < total_pages,
            has_previous=query.page > 1,
        ),
    )


def execute_page(store: MovieStore, query: MovieListQuery) -> MoviePageModel:
    """Run the planned count and scan against the store."""

    plan = plan_page(query)
    total = store.count(plan.movie_filter)
    rows = store.scan(plan.movie_filter, sort=plan.sort, offset=plan.offset, limit=plan.limit)
    return build_page(query, rows, total)
