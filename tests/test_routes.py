from __future__ import annotations

import asyncio
from typing import cast

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import register_routes
from app.models import FilmRecord
from app.query_cache import QueryCache
from app.services.films import FilmDataService, ServiceError

from conftest import make_film


FILMS = [
    make_film("1", "Dune", "Sci-Fi", 8.5, duration_min=155),
    make_film("2", "Clue", "Comedy", 7.0, duration_min=94),
]


class DummyFilmService(FilmDataService):
    """FilmDataService stub serving queued outcomes without touching the network."""

    def __init__(self, *outcomes: object, delay: float = 0.0) -> None:
        super().__init__(Settings(_env_file=None), cast(httpx.AsyncClient, object()))
        self.calls = 0
        self._outcomes = list(outcomes)
        self._delay = delay

    async def fetch_all(self) -> list[FilmRecord]:  # type: ignore[override]
        self.calls += 1
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if self._delay:
            await asyncio.sleep(self._delay)
        if isinstance(outcome, Exception):
            raise outcome
        return cast(list[FilmRecord], outcome)


def build_app(service: DummyFilmService, **settings_overrides: object) -> FastAPI:
    app = FastAPI()
    register_routes(app)
    app.state.settings = Settings(_env_file=None, **settings_overrides)  # type: ignore[arg-type]
    app.state.film_service = service
    app.state.query_cache = QueryCache()
    return app


def test_healthcheck() -> None:
    with TestClient(build_app(DummyFilmService(FILMS))) as client:
        response = client.get("/healthz")

    assert response.json() == {"status": "ok"}


def test_index_redirects_to_films() -> None:
    with TestClient(build_app(DummyFilmService(FILMS))) as client:
        response = client.get("/", follow_redirects=False)

    assert response.status_code in {302, 307}
    assert response.headers["location"] == "/films"


def test_films_page_renders_populated_grid() -> None:
    service = DummyFilmService(FILMS)

    with TestClient(build_app(service)) as client:
        first = client.get("/films")
        second = client.get("/films", params={"q": "sci"})

    assert first.status_code == 200
    assert 'data-state="populated"' in first.text
    assert 'data-testid="link-film-1"' in first.text
    assert 'data-testid="link-film-2"' in first.text
    assert 'data-testid="link-film-2"' not in second.text
    assert service.calls == 1


def test_results_fragment_reports_empty_state() -> None:
    with TestClient(build_app(DummyFilmService(FILMS))) as client:
        response = client.get("/films/results", params={"q": "zz"})

    assert response.status_code == 200
    assert response.headers["X-Render-State"] == "empty"
    assert "No films found matching your search." in response.text


def test_results_fragment_loading_while_fetch_pending() -> None:
    service = DummyFilmService(FILMS, delay=5.0)
    app = build_app(service, INITIAL_RENDER_TIMEOUT=0)

    with TestClient(app) as client:
        response = client.get("/films/results", params={"q": "du"})

    assert response.headers["X-Render-State"] == "loading"
    assert response.text.count('class="card skeleton"') == 8


def test_api_reports_failure_distinctly() -> None:
    service = DummyFilmService(ServiceError("down", kind="server", status_code=500))

    with TestClient(build_app(service)) as client:
        response = client.get("/api/films", params={"q": "zz"})
        page = client.get("/films")

    assert response.status_code == 502
    payload = response.json()
    assert payload["state"] == "error"
    assert payload["error"] == {"kind": "server", "message": "down"}
    assert 'data-state="error"' in page.text
    assert "No films found matching your search." not in page.text


def test_api_lists_filtered_films() -> None:
    with TestClient(build_app(DummyFilmService(FILMS))) as client:
        response = client.get("/api/films", params={"q": "DU"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["state"] == "populated"
    assert payload["term"] == "DU"
    assert payload["count"] == 1
    assert payload["films"][0]["href"] == "/films/1"
    assert payload["films"][0]["durationMin"] == 155


def test_refresh_refetches_collection() -> None:
    service = DummyFilmService(FILMS, FILMS[1:])

    with TestClient(build_app(service)) as client:
        before = client.get("/api/films").json()
        refreshed = client.post("/api/films/refresh")
        after = client.get("/api/films").json()

    assert refreshed.status_code == 202
    assert refreshed.json() == {"status": "refreshing"}
    assert before["count"] == 2
    assert after["count"] == 1
    assert service.calls == 2


def test_refresh_before_first_fetch_starts_it() -> None:
    service = DummyFilmService(FILMS)

    with TestClient(build_app(service)) as client:
        refreshed = client.post("/api/films/refresh")
        listing = client.get("/api/films").json()

    assert refreshed.status_code == 202
    assert listing["count"] == 2
    assert service.calls == 1


def test_failed_fetch_is_retried_by_next_request() -> None:
    service = DummyFilmService(ServiceError("blip", kind="transport"), FILMS)

    with TestClient(build_app(service)) as client:
        first = client.get("/api/films")
        second = client.get("/api/films")
        third = client.get("/films")

    assert first.status_code == 502
    assert second.status_code == 200
    assert second.json()["state"] == "populated"
    assert second.json()["count"] == 2
    assert 'data-state="populated"' in third.text
    assert service.calls == 2
