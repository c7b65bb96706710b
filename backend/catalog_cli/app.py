"""Command line interface for the Movie Catalog API."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Optional

import httpx
import typer

from .client import create_client


DEFAULT_API_BASE = "http://localhost:8000"

app = typer.Typer(help="Interact with the Movie Catalog backend service.")
movies_app = typer.Typer(help="Browse and edit catalog movies.")
app.add_typer(movies_app, name="movies")
sync_app = typer.Typer(help="Reconcile the catalog with the external feed.")
app.add_typer(sync_app, name="sync")


RUN_STATUS_CHOICES = {"queued", "running", "completed", "failed"}
LOG_LEVEL_CHOICES = {"debug", "info", "warning", "error"}
SORT_FIELD_CHOICES = {
    "episode_number",
    "title",
    "director",
    "producer",
    "release_date",
    "created_at",
    "updated_at",
}


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the Catalog API service.",
        show_default=True,
        envvar="MOVIE_CATALOG_API_BASE",
    )


def _principal_option() -> typer.Option:
    return typer.Option(
        "cli",
        "--principal",
        help="Principal forwarded to the API as the authenticated caller.",
        envvar="MOVIE_CATALOG_PRINCIPAL",
    )


def _role_option() -> typer.Option:
    return typer.Option(
        "USER",
        "--role",
        help="Role claim forwarded with the principal (USER or ADMIN).",
        envvar="MOVIE_CATALOG_ROLE",
    )


@dataclass(frozen=True)
class IdentityHeaders:
    """Header names the API reads the caller identity from."""

    principal: str = "X-Principal"
    role: str = "X-Principal-Role"


@app.callback()
def configure_identity(
    ctx: typer.Context,
    principal_header: str = typer.Option(
        IdentityHeaders.principal,
        "--principal-header",
        help="Header carrying the principal; must match the API principal_header setting.",
        envvar="MOVIE_CATALOG_PRINCIPAL_HEADER",
    ),
    role_header: str = typer.Option(
        IdentityHeaders.role,
        "--role-header",
        help="Header carrying the role claim; must match the API role_header setting.",
        envvar="MOVIE_CATALOG_ROLE_HEADER",
    ),
) -> None:
    """Interact with the Movie Catalog backend service."""

    ctx.obj = IdentityHeaders(principal=principal_header, role=role_header)


def _identity(ctx: typer.Context, principal: str, role: str) -> dict[str, str]:
    names = ctx.obj if isinstance(ctx.obj, IdentityHeaders) else IdentityHeaders()
    return {names.principal: principal, names.role: role.upper()}


def _emit(response: httpx.Response) -> None:
    """Print the JSON body, or the server error detail and exit non-zero."""

    if response.is_error:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        typer.echo(f"Error {response.status_code}: {detail}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        _emit(client.get("/health"))


@movies_app.command("list")
def list_movies(
    ctx: typer.Context,
    page: int = typer.Option(1, min=1, help="Page number starting at 1."),
    limit: int = typer.Option(10, min=1, max=100, help="Number of movies per page."),
    sort_by: str = typer.Option("episode_number", help="Field to sort by.", show_default=True),
    sort_order: str = typer.Option("asc", help="Sort direction (asc or desc).", show_default=True),
    search: Optional[str] = typer.Option(
        None, help="Search term matched against title, director or producer."
    ),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display one page of the catalog."""

    if sort_by not in SORT_FIELD_CHOICES:
        typer.echo(
            "Invalid sort field. Allowed values: " + ", ".join(sorted(SORT_FIELD_CHOICES)),
            err=True,
        )
        raise typer.Exit(code=1)
    if sort_order not in {"asc", "desc"}:
        typer.echo("Invalid sort order. Allowed values: asc, desc", err=True)
        raise typer.Exit(code=1)

    params: dict[str, object] = {
        "page": page,
        "limit": limit,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    if search:
        params["search"] = search

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.get("/movies", params=params))


@movies_app.command("all")
def list_all_movies(
    ctx: typer.Context,
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display every movie ordered by episode number."""

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.get("/movies/all"))


@movies_app.command("show")
def show_movie(
    ctx: typer.Context,
    movie_id: str = typer.Argument(..., help="Identifier of the movie to display."),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display details for a single movie."""

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.get(f"/movies/{movie_id}"))


@movies_app.command("create")
def create_movie(
    ctx: typer.Context,
    title: str = typer.Option(..., help="Movie title."),
    episode_number: int = typer.Option(..., help="Episode number, unique in the catalog."),
    director: str = typer.Option(..., help="Director name."),
    producer: str = typer.Option(..., help="Producer names."),
    release_date: str = typer.Option(..., help="Release date, e.g. 1977-05-25."),
    opening_text: Optional[str] = typer.Option(None, help="Optional opening crawl."),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Create a movie (requires the ADMIN role)."""

    payload: dict[str, object] = {
        "title": title,
        "episode_number": episode_number,
        "director": director,
        "producer": producer,
        "release_date": release_date,
    }
    if opening_text is not None:
        payload["opening_text"] = opening_text

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.post("/movies", json=payload))


@movies_app.command("update")
def update_movie(
    ctx: typer.Context,
    movie_id: str = typer.Argument(..., help="Identifier of the movie to update."),
    title: Optional[str] = typer.Option(None, help="New title."),
    episode_number: Optional[int] = typer.Option(None, help="New episode number."),
    director: Optional[str] = typer.Option(None, help="New director."),
    producer: Optional[str] = typer.Option(None, help="New producer."),
    release_date: Optional[str] = typer.Option(None, help="New release date."),
    opening_text: Optional[str] = typer.Option(None, help="New opening crawl."),
    clear_opening_text: bool = typer.Option(
        False,
        "--clear-opening-text/--no-clear-opening-text",
        help="Remove the stored opening crawl.",
        show_default=False,
    ),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Apply a partial update to a movie (requires the ADMIN role)."""

    if opening_text is not None and clear_opening_text:
        typer.echo("Cannot set and clear the opening text in the same command.", err=True)
        raise typer.Exit(code=1)

    payload: dict[str, object] = {}
    for key, value in (
        ("title", title),
        ("episode_number", episode_number),
        ("director", director),
        ("producer", producer),
        ("release_date", release_date),
        ("opening_text", opening_text),
    ):
        if value is not None:
            payload[key] = value
    if clear_opening_text:
        payload["opening_text"] = None

    if not payload:
        typer.echo("No updates supplied.")
        raise typer.Exit(code=1)

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.patch(f"/movies/{movie_id}", json=payload))


@movies_app.command("delete")
def delete_movie(
    ctx: typer.Context,
    movie_id: str = typer.Argument(..., help="Identifier of the movie to delete."),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Delete a movie (requires the ADMIN role)."""

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.delete(f"/movies/{movie_id}"))


@sync_app.command("run")
def run_sync(
    ctx: typer.Context,
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Reconcile the catalog now and print the summary."""

    with create_client(api_base, headers=_identity(ctx, principal, role), timeout=120.0) as client:
        _emit(client.post("/movies/sync"))


@sync_app.command("enqueue")
def enqueue_sync(
    ctx: typer.Context,
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Queue a reconciliation run for the background worker."""

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.post("/sync/runs"))


@sync_app.command("runs")
def list_sync_runs(
    ctx: typer.Context,
    limit: int = typer.Option(10, min=1, max=100, help="Number of recent runs to display."),
    statuses: Optional[List[str]] = typer.Option(
        None,
        "--status",
        help="Filter results to specific run statuses (repeat the flag).",
    ),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display recent reconciliation runs."""

    params: dict[str, object] = {"limit": limit}
    if statuses:
        normalized_statuses: list[str] = []
        for status in statuses:
            value = status.lower()
            if value not in RUN_STATUS_CHOICES:
                typer.echo(
                    "Invalid status value. Allowed values: "
                    + ", ".join(sorted(RUN_STATUS_CHOICES)),
                    err=True,
                )
                raise typer.Exit(code=1)
            normalized_statuses.append(value)
        params["status"] = normalized_statuses

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.get("/sync/runs", params=params))


@sync_app.command("show")
def show_sync_run(
    ctx: typer.Context,
    run_id: str = typer.Argument(..., help="Identifier of the run to display."),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display details for a single reconciliation run."""

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.get(f"/sync/runs/{run_id}"))


@sync_app.command("logs")
def sync_run_logs(
    ctx: typer.Context,
    run_id: str = typer.Argument(..., help="Identifier of the run to inspect."),
    limit: int = typer.Option(50, min=1, max=500, help="Maximum number of log entries."),
    levels: Optional[List[str]] = typer.Option(
        None,
        "--level",
        help="Only show events with these severities (repeat the flag).",
    ),
    principal: str = _principal_option(),
    role: str = _role_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display persisted log events for a reconciliation run."""

    params: dict[str, object] = {"limit": limit}
    if levels:
        normalized_levels = [level.lower() for level in levels]
        if set(normalized_levels) - LOG_LEVEL_CHOICES:
            typer.echo(
                "Invalid level value. Allowed values: " + ", ".join(sorted(LOG_LEVEL_CHOICES)),
                err=True,
            )
            raise typer.Exit(code=1)
        params["level"] = normalized_levels

    with create_client(api_base, headers=_identity(ctx, principal, role)) as client:
        _emit(client.get(f"/sync/runs/{run_id}/logs", params=params))
