"""Catalog view orchestrating the fetch, the search term and the render state."""

from __future__ import annotations

import asyncio
import logging

from .filtering import filter_films
from .models import FilmRecord
from .query_cache import CacheEntry, Loader, QueryCache
from .services.films import ServiceError
from .view_state import DEFAULT_SKELETON_COUNT, RenderState, resolve_view_state

logger = logging.getLogger(__name__)

FILMS_QUERY_KEY = "films"


class CatalogView:
    """Browse page state for the film collection.

    The view owns the search term. The film data lives in the shared
    :class:`QueryCache` under :data:`FILMS_QUERY_KEY`.
    """

    def __init__(
        self,
        cache: QueryCache,
        loader: Loader,
        *,
        search_term: str = "",
        skeleton_count: int = DEFAULT_SKELETON_COUNT,
    ) -> None:
        self._cache = cache
        self._loader = loader
        self._search_term = search_term
        self._skeleton_count = skeleton_count
        self._mounted = False

    @property
    def search_term(self) -> str:
        return self._search_term

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def entry(self) -> CacheEntry | None:
        return self._cache.get(FILMS_QUERY_KEY)

    def mount(self) -> asyncio.Task | None:
        """Kick off the fetch for this mount; repeated calls attach to the same one.

        A fresh mount retries a failed fetch. Re-rendering a mounted view does not.
        """

        if self._mounted:
            return self._cache.in_flight(FILMS_QUERY_KEY)
        self._mounted = True
        return self._cache.ensure_fetch(FILMS_QUERY_KEY, self._loader)

    async def settle(self, timeout: float | None = None) -> RenderState:
        """Mount and wait up to ``timeout`` seconds for the fetch to finish."""

        task = self.mount()
        if task is not None:
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout)
            except asyncio.TimeoutError:
                logger.debug("Film fetch still pending after %ss", timeout)
            except ServiceError:
                # Recorded on the cache entry; the resolver renders it.
                pass
        return self.state()

    def set_search_term(self, value: str) -> None:
        self._search_term = value

    def filtered_films(self) -> list[FilmRecord]:
        entry = self.entry
        if entry is None or entry.data is None:
            return []
        return filter_films(entry.data, self._search_term)

    def state(self) -> RenderState:
        return resolve_view_state(
            self.entry,
            self.filtered_films(),
            skeleton_count=self._skeleton_count,
        )

    def refresh(self) -> asyncio.Task | None:
        """React to an external refresh signal by refetching the collection."""

        return self._cache.invalidate(FILMS_QUERY_KEY)

    def unmount(self) -> None:
        """Tear down: reset the term and drop any result still on its way."""

        self._search_term = ""
        if self._mounted:
            self._cache.discard(FILMS_QUERY_KEY)
        self._mounted = False
