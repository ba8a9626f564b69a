"""Entry point for the FastAPI-powered film catalog."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from .catalog_view import FILMS_QUERY_KEY, CatalogView
from .config import Settings, settings
from .query_cache import QueryCache
from .services.films import FilmDataService
from .view_state import Failed, Populated, RenderState
from .web import render_catalog_page, render_results

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    data_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.data_service_base_url,
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=5.0),
        )
    )
    query_cache = QueryCache()

    fastapi_app.state.settings = settings
    fastapi_app.state.film_service = FilmDataService(settings, data_client)
    fastapi_app.state.query_cache = query_cache

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        query_cache.close()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Browse the film catalog by title or genre",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_film_service(app: FastAPI) -> FilmDataService:
    service = getattr(app.state, "film_service", None)
    if not isinstance(service, FilmDataService):
        raise RuntimeError("Film data service not initialised")
    return service


def get_query_cache(app: FastAPI) -> QueryCache:
    cache = getattr(app.state, "query_cache", None)
    if not isinstance(cache, QueryCache):
        raise RuntimeError("Query cache not initialised")
    return cache


def get_settings_for(app: FastAPI) -> Settings:
    configured = getattr(app.state, "settings", None)
    if isinstance(configured, Settings):
        return configured
    return settings


def register_routes(fastapi_app: FastAPI) -> None:
    def _build_view(search_term: str) -> CatalogView:
        app_settings = get_settings_for(fastapi_app)
        return CatalogView(
            get_query_cache(fastapi_app),
            get_film_service(fastapi_app).fetch_all,
            search_term=search_term,
            skeleton_count=app_settings.skeleton_count,
        )

    async def _settled_view(search_term: str) -> tuple[CatalogView, RenderState]:
        view = _build_view(search_term)
        timeout = get_settings_for(fastapi_app).initial_render_timeout
        state = await view.settle(timeout)
        return view, state

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/")
    async def index() -> RedirectResponse:
        return RedirectResponse(url="/films")

    @fastapi_app.get("/films", response_class=HTMLResponse)
    async def films_page(q: str = "") -> HTMLResponse:
        view, _ = await _settled_view(q)
        return HTMLResponse(
            render_catalog_page(get_settings_for(fastapi_app), view)
        )

    @fastapi_app.get("/films/results", response_class=HTMLResponse)
    async def films_results(q: str = "") -> HTMLResponse:
        _, state = await _settled_view(q)
        return HTMLResponse(
            render_results(state), headers={"X-Render-State": state.kind}
        )

    @fastapi_app.get("/api/films")
    async def films_api(q: str = "") -> JSONResponse:
        _, state = await _settled_view(q)
        payload: dict[str, Any] = {
            "state": state.kind,
            "term": q,
            "count": 0,
            "films": [],
            "error": None,
        }
        if isinstance(state, Populated):
            payload["films"] = [film.to_payload() for film in state.films]
            payload["count"] = len(state.films)
        if isinstance(state, Failed):
            error = state.error
            payload["error"] = {
                "kind": error.kind,
                "message": str(error),
            }
            return JSONResponse(payload, status_code=502)
        return JSONResponse(payload)

    @fastapi_app.post("/api/films/refresh", status_code=202)
    async def refresh_films() -> dict[str, str]:
        cache = get_query_cache(fastapi_app)
        try:
            cache.invalidate(FILMS_QUERY_KEY)
        except KeyError:
            # Nothing fetched yet, so this becomes the first fetch.
            cache.ensure_fetch(
                FILMS_QUERY_KEY, get_film_service(fastapi_app).fetch_all
            )
        except RuntimeError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {"status": "refreshing"}


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
