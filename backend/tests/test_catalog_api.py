"""HTTP tests for the Movie Catalog API application factory."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from rq.worker import SimpleWorker

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.catalog_api import create_app  # noqa: E402
from backend.catalog_api.errors import SyncFailedError  # noqa: E402
from backend.catalog_api.schemas import MovieModel, SyncRunModel  # noqa: E402
from backend.catalog_api.services import tasks  # noqa: E402
from backend.catalog_api.services.tasks import execute_sync_run  # noqa: E402
from backend.catalog_api.settings import CatalogSettings  # noqa: E402
from backend.catalog_worker.__main__ import seed_schedule  # noqa: E402

ADMIN = {"X-Principal": "ops", "X-Principal-Role": "ADMIN"}
USER = {"X-Principal": "viewer", "X-Principal-Role": "USER"}

FEED = {
    "message": "ok",
    "result": [
        {
            "uid": "1",
            "properties": {
                "title": "A New Hope",
                "episode_id": 4,
                "director": "George Lucas",
                "producer": "Gary Kurtz, Rick McCallum",
                "release_date": "1977-05-25",
                "opening_crawl": "It is a period of civil war.",
            },
        },
        {
            "uid": "2",
            "properties": {
                "title": "The Empire Strikes Back",
                "episode_id": 5,
                "director": "Irvin Kershner",
                "producer": "Gary Kurtz, Rick McCallum",
                "release_date": "1980-05-17",
            },
        },
    ],
}


class StubFeed:
    """Feed double returning a fixed payload or raising a fixed error."""

    def __init__(self, payload: Any = None, error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error

    def fetch(self) -> Any:
        if self.error:
            raise self.error
        return self.payload


@pytest.fixture()
def client(tmp_path: Path) -> TestClient:
    """Provide a test client backed by an isolated SQLite database."""

    settings = CatalogSettings(
        database_url=f"sqlite:///{tmp_path / 'catalog.db'}",
        redis_url="fakeredis://",
    )
    app = create_app(settings=settings)
    app.state.app_state.sync_queue.connection.flushall()
    return TestClient(app)


def drain_jobs(client: TestClient) -> None:
    """Drain queued jobs using an in-process RQ worker."""

    app_state = client.app.state.app_state
    worker = SimpleWorker(
        [app_state.sync_queue.queue], connection=app_state.sync_queue.connection
    )
    worker.work(burst=True)


def create_movie(client: TestClient, title: str, episode_number: int, **overrides: Any) -> dict:
    payload = {
        "title": title,
        "episode_number": episode_number,
        "director": "George Lucas",
        "producer": "Rick McCallum",
        "release_date": "1999-05-19",
    }
    payload.update(overrides)
    response = client.post("/movies", json=payload, headers=ADMIN)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoint_reports_ok_status(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": "0.1.0",
        "queue": {"status": "ok", "detail": None},
    }


def test_movie_routes_require_a_principal(client: TestClient) -> None:
    response = client.get("/movies")

    assert response.status_code == 401
    assert response.json() == {"detail": "Unauthorized"}


def test_unknown_role_claim_is_rejected(client: TestClient) -> None:
    response = client.get("/movies", headers={"X-Principal": "x", "X-Principal-Role": "ROOT"})

    assert response.status_code == 401


def test_missing_role_defaults_to_user(client: TestClient) -> None:
    response = client.post(
        "/movies",
        json={
            "title": "A New Hope",
            "episode_number": 4,
            "director": "George Lucas",
            "producer": "Gary Kurtz",
            "release_date": "1977-05-25",
        },
        headers={"X-Principal": "anonymous"},
    )

    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"


def test_create_returns_manual_entry_record(client: TestClient) -> None:
    body = create_movie(client, "A New Hope", 4, opening_text="It is a period of civil war.")

    movie = MovieModel.model_validate(body)
    assert movie.external_id == "manual-entry"
    assert movie.opening_text == "It is a period of civil war."

    detail = client.get(f"/movies/{movie.id}", headers=USER)
    assert detail.status_code == 200
    assert detail.json() == body


def test_create_rejects_normalized_duplicate_title(client: TestClient) -> None:
    create_movie(client, "A New Hope", 4)

    response = client.post(
        "/movies",
        json={
            "title": "a new hope ",
            "episode_number": 99,
            "director": "Someone",
            "producer": "Someone",
            "release_date": "2000-01-01",
        },
        headers=ADMIN,
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "Conflict",
        "detail": 'Movie with title "a new hope " already exists',
    }


def test_create_rejects_duplicate_episode(client: TestClient) -> None:
    create_movie(client, "A New Hope", 4)

    response = client.post(
        "/movies",
        json={
            "title": "Star Wars",
            "episode_number": 4,
            "director": "George Lucas",
            "producer": "Gary Kurtz",
            "release_date": "1977-05-25",
        },
        headers=ADMIN,
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Movie with episode number 4 already exists"


def test_create_validates_payload(client: TestClient) -> None:
    response = client.post("/movies", json={"title": "No Episode"}, headers=ADMIN)

    assert response.status_code == 422


def test_update_applies_partial_patch(client: TestClient) -> None:
    movie = create_movie(client, "A New Hope", 4, opening_text="Crawl")

    response = client.patch(
        f"/movies/{movie['id']}",
        json={"director": "G. Lucas", "opening_text": None},
        headers=ADMIN,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["director"] == "G. Lucas"
    assert body["opening_text"] is None
    assert body["title"] == "A New Hope"
    assert body["producer"] == movie["producer"]


def test_update_conflicts_and_permissions(client: TestClient) -> None:
    first = create_movie(client, "A New Hope", 4)
    create_movie(client, "The Empire Strikes Back", 5)

    forbidden = client.patch(f"/movies/{first['id']}", json={"title": "X"}, headers=USER)
    assert forbidden.status_code == 403

    conflict = client.patch(
        f"/movies/{first['id']}",
        json={"episode_number": 5},
        headers=ADMIN,
    )
    assert conflict.status_code == 409

    missing = client.patch("/movies/does-not-exist", json={"title": "X"}, headers=ADMIN)
    assert missing.status_code == 404
    assert missing.json() == {
        "error": "Not Found",
        "detail": "Movie with ID does-not-exist not found",
    }


def test_delete_then_lookup_returns_404(client: TestClient) -> None:
    movie = create_movie(client, "A New Hope", 4)

    forbidden = client.delete(f"/movies/{movie['id']}", headers=USER)
    assert forbidden.status_code == 403

    response = client.delete(f"/movies/{movie['id']}", headers=ADMIN)
    assert response.status_code == 200
    assert response.json() == {"message": f"Movie with ID {movie['id']} has been deleted"}

    lookup = client.get(f"/movies/{movie['id']}", headers=USER)
    assert lookup.status_code == 404
    assert lookup.json()["error"] == "Not Found"

    again = client.delete(f"/movies/{movie['id']}", headers=ADMIN)
    assert again.status_code == 404


def test_list_movies_paginates_and_searches(client: TestClient) -> None:
    for episode, title in enumerate(
        ["The Phantom Menace", "Attack of the Clones", "Revenge of the Sith"], start=1
    ):
        create_movie(client, title, episode)
    create_movie(client, "The Empire Strikes Back", 5, director="Irvin Kershner")

    response = client.get("/movies", params={"page": 2, "limit": 2}, headers=USER)
    assert response.status_code == 200
    body = response.json()
    assert [item["episode_number"] for item in body["data"]] == [3, 5]
    assert body["meta"] == {
        "page": 2,
        "limit": 2,
        "total": 4,
        "total_pages": 2,
        "has_next": False,
        "has_previous": True,
    }

    search = client.get(
        "/movies",
        params={"search": "LUCAS", "sort_by": "title", "sort_order": "desc"},
        headers=USER,
    )
    assert [item["title"] for item in search.json()["data"]] == [
        "The Phantom Menace",
        "Revenge of the Sith",
        "Attack of the Clones",
    ]
    assert search.json()["meta"]["total"] == 3


@pytest.mark.parametrize(
    "params",
    [{"page": 0}, {"limit": 0}, {"limit": 101}, {"sort_by": "budget"}, {"sort_order": "up"}],
)
def test_list_movies_rejects_invalid_query(client: TestClient, params: dict) -> None:
    response = client.get("/movies", params=params, headers=USER)

    assert response.status_code == 422


def test_list_all_orders_by_episode(client: TestClient) -> None:
    create_movie(client, "Revenge of the Sith", 3)
    create_movie(client, "The Phantom Menace", 1)

    response = client.get("/movies/all", headers=USER)

    assert response.status_code == 200
    assert [item["episode_number"] for item in response.json()] == [1, 3]


def test_inline_sync_imports_feed(client: TestClient) -> None:
    client.app.state.app_state.feed_client = StubFeed(FEED)

    forbidden = client.post("/movies/sync", headers=USER)
    assert forbidden.status_code == 403

    first = client.post("/movies/sync", headers=ADMIN)
    second = client.post("/movies/sync", headers=ADMIN)

    assert first.status_code == 200
    body = first.json()
    assert body["message"] == "Movies synced successfully"
    assert (body["synced"], body["skipped"], body["total"]) == (2, 0, 2)
    assert (second.json()["synced"], second.json()["skipped"]) == (0, 2)

    run = client.get(f"/sync/runs/{body['run_id']}", headers=USER)
    assert run.status_code == 200
    assert run.json()["status"] == "completed"


def test_inline_sync_failure_returns_502(client: TestClient) -> None:
    client.app.state.app_state.feed_client = StubFeed(
        error=SyncFailedError("feed responded with HTTP 500")
    )

    response = client.post("/movies/sync", headers=ADMIN)

    assert response.status_code == 502
    assert response.json() == {
        "error": "Sync Failed",
        "detail": "Failed to sync movies: feed responded with HTTP 500",
    }
    failed = client.get("/sync/runs", params={"status": "failed"}, headers=USER)
    assert len(failed.json()) == 1


def test_queued_sync_run_completes(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tasks, "FeedClient", lambda url, timeout: StubFeed(FEED))

    forbidden = client.post("/sync/runs", headers=USER)
    assert forbidden.status_code == 403

    response = client.post("/sync/runs", headers=ADMIN)
    assert response.status_code == 202
    run = SyncRunModel.model_validate(response.json())
    assert run.status == "queued"
    assert run.trigger == "manual"

    drain_jobs(client)

    detail = client.get(f"/sync/runs/{run.id}", headers=USER)
    assert detail.status_code == 200
    finished = SyncRunModel.model_validate(detail.json())
    assert finished.status == "completed"
    assert (finished.synced, finished.skipped, finished.total) == (2, 0, 2)

    logs = client.get(f"/sync/runs/{run.id}/logs", headers=USER)
    assert [entry["message"] for entry in logs.json()] == [
        "Sync run enqueued",
        "Sync run started",
        "Sync run completed",
    ]

    movies = client.get("/movies/all", headers=USER)
    assert [item["external_id"] for item in movies.json()] == ["1", "2"]


def test_sync_run_lookups_return_404(client: TestClient) -> None:
    assert client.get("/sync/runs/missing", headers=USER).status_code == 404
    assert client.get("/sync/runs/missing/logs", headers=USER).status_code == 404


def test_scheduled_run_books_the_next_one(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(tasks, "FeedClient", lambda url, timeout: StubFeed(FEED))
    app_state = client.app.state.app_state
    queue = app_state.sync_queue.queue
    queue.enqueue(
        execute_sync_run,
        kwargs={
            "run_id": None,
            "trigger": "scheduled",
            "settings": app_state.settings.model_dump(),
            "worker_name": "test-worker",
        },
    )

    drain_jobs(client)

    [run] = app_state.run_store.list()
    assert run.trigger == "scheduled"
    assert run.status == "completed"
    assert len(queue.scheduled_job_registry) == 1


def test_scheduled_run_failure_still_reschedules(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        tasks,
        "FeedClient",
        lambda url, timeout: StubFeed(error=SyncFailedError("feed responded with HTTP 503")),
    )
    app_state = client.app.state.app_state
    queue = app_state.sync_queue.queue
    queue.enqueue(
        execute_sync_run,
        kwargs={
            "run_id": None,
            "trigger": "scheduled",
            "settings": app_state.settings.model_dump(),
            "worker_name": "test-worker",
        },
    )

    drain_jobs(client)

    [run] = app_state.run_store.list()
    assert run.status == "failed"
    assert len(queue.scheduled_job_registry) == 1


def test_seed_schedule_books_a_single_job(client: TestClient) -> None:
    queue_service = client.app.state.app_state.sync_queue

    assert seed_schedule(queue_service) is True
    assert seed_schedule(queue_service) is False
    assert len(queue_service.queue.scheduled_job_registry) == 1


def test_create_rejects_blank_title(client: TestClient) -> None:
    response = client.post(
        "/movies",
        json={
            "title": "   ",
            "episode_number": 1,
            "director": "George Lucas",
            "producer": "Rick McCallum",
            "release_date": "1999-05-19",
        },
        headers=ADMIN,
    )

    assert response.status_code == 422
    assert client.get("/movies/all", headers=USER).json() == []


def test_search_matches_accented_text(client: TestClient) -> None:
    create_movie(client, "Érase una vez", 10)
    create_movie(client, "A New Hope", 4)

    response = client.get("/movies", params={"search": "ÉRASE"}, headers=USER)

    assert [item["title"] for item in response.json()["data"]] == ["Érase una vez"]


def test_sync_run_logs_filter_by_level(client: TestClient) -> None:
    feed = {"result": [FEED["result"][0], {"uid": "9"}]}
    client.app.state.app_state.feed_client = StubFeed(feed)
    run_id = client.post("/movies/sync", headers=ADMIN).json()["run_id"]

    warnings = client.get(
        f"/sync/runs/{run_id}/logs", params={"level": "warning"}, headers=USER
    )
    everything = client.get(f"/sync/runs/{run_id}/logs", headers=USER)
    invalid = client.get(f"/sync/runs/{run_id}/logs", params={"level": "loud"}, headers=USER)

    assert [entry["context"]["external_id"] for entry in warnings.json()] == ["9"]
    assert len(everything.json()) == 3
    assert invalid.status_code == 422
