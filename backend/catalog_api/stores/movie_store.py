"""Movie store exposing the catalog persistence operations."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Sequence
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import MovieConflictError, MovieNotFoundError
from ..models import MANUAL_ENTRY, MovieRecord, utcnow
from ..schemas import MovieModel


def normalize_title(title: str) -> str:
    """Return the comparison key for a title: trimmed and lower-cased."""

    return title.strip().lower()


def search_key(value: str) -> str:
    """Return the lower-cased copy of a text column used for searching."""

    return value.lower()


@dataclass(frozen=True, slots=True)
class MovieFilter:
    """Conjunction of optional predicates understood by :class:`MovieStore`.

    ``search`` matches records whose title, director or producer contains the
    term, ignoring case. The term is folded with :func:`search_key` and compared
    against the stored ``*_key`` columns.
    """

    title_key: str | None = None
    episode_number: int | None = None
    exclude_id: str | None = None
    search: str | None = None


@dataclass(frozen=True, slots=True)
class MovieSort:
    field: str = "episode_number"
    direction: Literal["asc", "desc"] = "asc"


@dataclass(slots=True)
class MovieStore:
    """SQLModel-backed accessor for catalog movies."""

    engine: Engine

    def create(
        self,
        *,
        title: str,
        episode_number: int,
        director: str,
        producer: str,
        release_date: str,
        opening_text: str | None = None,
        external_id: str = MANUAL_ENTRY,
    ) -> MovieModel:
        """Insert a new movie and return it with its assigned identifier."""

        record = MovieRecord(
            id=uuid4().hex,
            external_id=external_id,
            title=title,
            title_key=normalize_title(title),
            episode_number=episode_number,
            director=director,
            producer=producer,
            director_key=search_key(director),
            producer_key=search_key(producer),
            release_date=release_date,
            opening_text=opening_text,
        )
        with Session(self.engine) as session:
            session.add(record)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise _conflict_from(exc, title=title, episode_number=episode_number) from exc
            session.refresh(record)
            return _to_model(record)

    def get(self, movie_id: str) -> MovieModel | None:
        """Return a single movie if present."""

        with Session(self.engine) as session:
            record = session.get(MovieRecord, movie_id)
            return _to_model(record) if record else None

    def get_by_external_id(self, external_id: str) -> MovieModel | None:
        """Return the movie imported from the given feed identifier."""

        statement = select(MovieRecord).where(MovieRecord.external_id == external_id)
        with Session(self.engine) as session:
            record = session.exec(statement).first()
            return _to_model(record) if record else None

    def find_one(self, movie_filter: MovieFilter) -> MovieModel | None:
        statement = select(MovieRecord)
        for condition in _conditions(movie_filter):
            statement = statement.where(condition)
        with Session(self.engine) as session:
            record = session.exec(statement.order_by(MovieRecord.id).limit(1)).first()
            return _to_model(record) if record else None

    def count(self, movie_filter: MovieFilter) -> int:
        statement = select(func.count()).select_from(MovieRecord)
        for condition in _conditions(movie_filter):
            statement = statement.where(condition)
        with Session(self.engine) as session:
            return session.exec(statement).one()

    def scan(
        self,
        movie_filter: MovieFilter,
        *,
        sort: MovieSort,
        offset: int,
        limit: int,
    ) -> list[MovieModel]:
        """Return one window of matching movies in the requested order."""

        column = getattr(MovieRecord, sort.field)
        order = column.desc() if sort.direction == "desc" else column.asc()
        statement = select(MovieRecord)
        for condition in _conditions(movie_filter):
            statement = statement.where(condition)
        statement = statement.order_by(order, MovieRecord.id).offset(offset).limit(limit)
        with Session(self.engine) as session:
            records: Sequence[MovieRecord] = session.exec(statement).all()
            return [_to_model(record) for record in records]

    def list_all(self) -> list[MovieModel]:
        """Return every movie ordered by episode number."""

        statement = select(MovieRecord).order_by(MovieRecord.episode_number, MovieRecord.id)
        with Session(self.engine) as session:
            return [_to_model(record) for record in session.exec(statement).all()]

    def update(self, movie_id: str, patch: dict[str, Any]) -> MovieModel:
        """Apply the supplied fields to a movie; other columns are left untouched."""

        with Session(self.engine) as session:
            record = session.get(MovieRecord, movie_id)
            if record is None:
                raise MovieNotFoundError(movie_id)
            for key, value in patch.items():
                setattr(record, key, value)
            if "title" in patch:
                record.title_key = normalize_title(patch["title"])
            if "director" in patch:
                record.director_key = search_key(patch["director"])
            if "producer" in patch:
                record.producer_key = search_key(patch["producer"])
            record.updated_at = utcnow()
            session.add(record)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise _conflict_from(
                    exc,
                    title=patch.get("title"),
                    episode_number=patch.get("episode_number"),
                ) from exc
            session.refresh(record)
            return _to_model(record)

    def delete(self, movie_id: str) -> None:
        with Session(self.engine) as session:
            record = session.get(MovieRecord, movie_id)
            if record is None:
                raise MovieNotFoundError(movie_id)
            session.delete(record)
            session.commit()


def _conditions(movie_filter: MovieFilter) -> list[Any]:
    """Translate a filter value into SQL expressions."""

    conditions: list[Any] = []
    if movie_filter.title_key is not None:
        conditions.append(MovieRecord.title_key == movie_filter.title_key)
    if movie_filter.episode_number is not None:
        conditions.append(MovieRecord.episode_number == movie_filter.episode_number)
    if movie_filter.exclude_id is not None:
        conditions.append(MovieRecord.id != movie_filter.exclude_id)
    if movie_filter.search:
        term = search_key(movie_filter.search)
        conditions.append(
            or_(
                MovieRecord.title_key.contains(term, autoescape=True),
                MovieRecord.director_key.contains(term, autoescape=True),
                MovieRecord.producer_key.contains(term, autoescape=True),
            )
        )
    return conditions


def _conflict_from(
    exc: IntegrityError,
    *,
    title: str | None,
    episode_number: int | None,
) -> MovieConflictError:
    """Map a unique-index violation onto the matching conflict message."""

    detail = str(exc.orig)
    if "title_key" in detail and title is not None:
        return MovieConflictError.for_title(title)
    if "episode_number" in detail and episode_number is not None:
        return MovieConflictError.for_episode(episode_number)
    if "external_id" in detail:
        return MovieConflictError("Movie with this external id already exists")
    return MovieConflictError("Movie violates a catalog uniqueness constraint")


def _to_model(record: MovieRecord) -> MovieModel:
    """Convert a movie record into a response model."""

    return MovieModel.model_validate(record)
