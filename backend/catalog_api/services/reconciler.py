"""Insert-only reconciliation of the catalog against the external film feed.

Each feed entry is classified on its own by :func:`decide_entry` into an
insert, a skip (already imported) or an ignore (malformed). The
:class:`Reconciler` only applies those decisions, so one bad entry never
aborts the pass. Fetch and payload-shape failures are the only fatal errors.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from ..errors import MovieConflictError, SyncFailedError
from ..schemas import MovieModel, SyncRunLogCreate, SyncSummaryModel
from ..stores.movie_store import MovieStore

logger = logging.getLogger(__name__)

TEXT_DEFAULTS = {
    "title": "Unknown Title",
    "director": "Unknown Director",
    "producer": "Unknown Producer",
    "release_date": "Unknown Date",
}

# feed property -> movie attribute
FIELD_MAP = {
    "title": "title",
    "director": "director",
    "producer": "producer",
    "release_date": "release_date",
    "episode_id": "episode_number",
    "opening_crawl": "opening_text",
}


class FeedSource(Protocol):
    def fetch(self) -> Any: ...


@dataclass(frozen=True, slots=True)
class InsertEntry:
    external_id: str
    fields: dict[str, Any]


@dataclass(frozen=True, slots=True)
class SkipEntry:
    external_id: str
    movie_id: str


@dataclass(frozen=True, slots=True)
class IgnoreEntry:
    reason: str
    external_id: str | None = None


EntryDecision = InsertEntry | SkipEntry | IgnoreEntry


def extract_entries(payload: Any) -> list[Any]:
    """Pull the list of film entries out of a feed payload."""

    entries: Any = payload
    if isinstance(payload, Mapping):
        entries = payload.get("result") or payload.get("results")
    if not isinstance(entries, list) or not entries:
        raise SyncFailedError("unexpected feed format")
    return entries


def map_properties(properties: Mapping[str, Any]) -> dict[str, Any]:
    """Convert feed properties into movie fields, filling placeholders."""

    fields: dict[str, Any] = {}
    for source, target in FIELD_MAP.items():
        fields[target] = properties.get(source) or None
    for name, placeholder in TEXT_DEFAULTS.items():
        fields[name] = str(fields[name]) if fields[name] else placeholder
    fields["episode_number"] = parse_episode(fields["episode_number"])
    return fields


def parse_episode(value: Any) -> int:
    """Return the episode number, ``0`` when absent.

    Raises ``ValueError`` for anything that is not a whole number, including
    booleans and floats with a fractional part.
    """

    if value is None:
        return 0
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"episode_id {value!r} is not an integer")
    return int(value)


def decide_entry(entry: Any, lookup: Callable[[str], MovieModel | None]) -> EntryDecision:
    """Classify one feed entry without writing anything."""

    if not isinstance(entry, Mapping):
        return IgnoreEntry(reason="entry is not an object")
    raw_id = entry.get("uid") or entry.get("id")
    properties = entry.get("properties")
    if not raw_id or not isinstance(properties, Mapping):
        return IgnoreEntry(
            reason="missing id or properties",
            external_id=str(raw_id) if raw_id else None,
        )

    external_id = str(raw_id)
    existing = lookup(external_id)
    if existing is not None:
        return SkipEntry(external_id=external_id, movie_id=existing.id)

    try:
        fields = map_properties(properties)
    except (TypeError, ValueError):
        return IgnoreEntry(reason="episode_id is not an integer", external_id=external_id)
    return InsertEntry(external_id=external_id, fields=fields)


@dataclass(slots=True)
class Reconciler:
    """Run one reconciliation pass and report ``synced``/``skipped``/``total``."""

    store: MovieStore
    feed: FeedSource
    log_event: Callable[[SyncRunLogCreate], None] | None = field(default=None)

    def reconcile(self) -> SyncSummaryModel:
        payload = self.feed.fetch()
        entries = extract_entries(payload)

        synced = 0
        skipped = 0
        for position, entry in enumerate(entries):
            decision = decide_entry(entry, self.store.get_by_external_id)
            if isinstance(decision, SkipEntry):
                skipped += 1
                continue
            if isinstance(decision, IgnoreEntry):
                self._warn(
                    f"Skipping feed entry: {decision.reason}",
                    {"position": position, "external_id": decision.external_id},
                )
                continue
            try:
                self.store.create(**decision.fields, external_id=decision.external_id)
            except MovieConflictError as exc:
                self._warn(
                    f"Skipping feed entry: {exc}",
                    {"position": position, "external_id": decision.external_id},
                )
                continue
            synced += 1

        summary = SyncSummaryModel(synced=synced, skipped=skipped, total=len(entries))
        logger.info(
            "Reconciliation finished: synced=%s skipped=%s total=%s",
            summary.synced,
            summary.skipped,
            summary.total,
        )
        return summary

    def _warn(self, message: str, context: dict[str, Any]) -> None:
        logger.warning("%s (%s)", message, context)
        if self.log_event is not None:
            self.log_event(SyncRunLogCreate(level="warning", message=message, context=context))
