"""Process-local async query cache with request de-duplication."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from .services.films import ServiceError

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]


@dataclass(slots=True)
class CacheEntry:
    """Snapshot of one query: its data, loading flag and last error."""

    data: Any | None = None
    is_loading: bool = True
    error: ServiceError | None = None
    updated_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return not self.is_loading and self.error is None


class QueryCache:
    """Cache keyed by query identifier.

    Concurrent requests for one key share a single in-flight task, so the
    loader runs at most once per fetch attempt. Each key carries a generation
    counter; results that resolve after the key was discarded or closed
    belong to an older generation and are dropped.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Task[Any]] = {}
        self._loaders: dict[str, Loader] = {}
        self._generations: dict[str, int] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def is_fetching(self, key: str) -> bool:
        return key in self._inflight

    def in_flight(self, key: str) -> asyncio.Task[Any] | None:
        return self._inflight.get(key)

    def ensure_fetch(self, key: str, loader: Loader) -> asyncio.Task[Any] | None:
        """Start the fetch for ``key`` unless it is in flight or already succeeded.

        A failed entry is fetched again. Returns the in-flight task, or ``None``
        when the entry holds data.
        Must be called from within a running event loop.
        """

        if self._closed:
            raise RuntimeError("QueryCache is closed")
        existing = self._inflight.get(key)
        if existing is not None:
            return existing
        entry = self._entries.get(key)
        if entry is not None and entry.succeeded:
            return None
        self._loaders[key] = loader
        return self._start(key)

    async def fetch(self, key: str, loader: Loader) -> Any:
        """Return the data for ``key``, waiting on the shared fetch if needed."""

        task = self.ensure_fetch(key, loader)
        if task is not None:
            return await asyncio.shield(task)
        return self._entries[key].data

    def invalidate(self, key: str) -> asyncio.Task[Any] | None:
        """Reset ``key`` to loading and run its loader again.

        A fetch that is already in flight is reused rather than duplicated.
        """

        if self._closed:
            raise RuntimeError("QueryCache is closed")
        if key not in self._loaders:
            raise KeyError(f"No query registered for key {key!r}")
        existing = self._inflight.get(key)
        if existing is not None:
            return existing
        logger.info("Invalidating query %s", key)
        return self._start(key)

    def discard(self, key: str) -> None:
        """Forget ``key``; any late result for it is thrown away."""

        self._generations[key] = self._generations.get(key, 0) + 1
        self._entries.pop(key, None)
        self._inflight.pop(key, None)
        self._loaders.pop(key, None)

    def close(self) -> None:
        keys = set(self._entries) | set(self._inflight) | set(self._loaders)
        for key in keys:
            self.discard(key)
        self._closed = True

    def _start(self, key: str) -> asyncio.Task[Any]:
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        self._entries[key] = CacheEntry(is_loading=True)
        loader = self._loaders[key]
        task = asyncio.get_running_loop().create_task(
            self._run(key, loader, generation), name=f"query:{key}"
        )
        task.add_done_callback(self._consume_result)
        self._inflight[key] = task
        return task

    def _is_current(self, key: str, generation: int) -> bool:
        return not self._closed and self._generations.get(key) == generation

    async def _run(self, key: str, loader: Loader, generation: int) -> Any:
        try:
            data = await loader()
        except ServiceError as exc:
            if self._is_current(key, generation):
                # Stale data from an earlier success is not kept.
                self._entries[key] = CacheEntry(
                    data=None,
                    is_loading=False,
                    error=exc,
                    updated_at=datetime.now(timezone.utc),
                )
            else:
                logger.debug("Dropping late failure for discarded query %s", key)
            raise
        except BaseException:
            if self._is_current(key, generation):
                self._entries.pop(key, None)
                self._loaders.pop(key, None)
            raise
        finally:
            if self._generations.get(key) == generation:
                self._inflight.pop(key, None)

        if self._is_current(key, generation):
            self._entries[key] = CacheEntry(
                data=data,
                is_loading=False,
                error=None,
                updated_at=datetime.now(timezone.utc),
            )
        else:
            logger.debug("Dropping late result for discarded query %s", key)
        return data

    @staticmethod
    def _consume_result(task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None or isinstance(exc, ServiceError):
            return
        logger.error(
            "Loader for %s failed unexpectedly",
            task.get_name(),
            exc_info=(type(exc), exc, exc.__traceback__),
        )
