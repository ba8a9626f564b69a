"""Render-state derivation for the catalog view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Sequence, Union

from .models import FilmRecord
from .query_cache import CacheEntry
from .services.films import ServiceError

DEFAULT_SKELETON_COUNT = 8


@dataclass(frozen=True, slots=True)
class Loading:
    kind: ClassVar[Literal["loading"]] = "loading"
    skeleton_count: int = DEFAULT_SKELETON_COUNT


@dataclass(frozen=True, slots=True)
class Populated:
    kind: ClassVar[Literal["populated"]] = "populated"
    films: tuple[FilmRecord, ...]

    def __post_init__(self) -> None:
        if not self.films:
            raise ValueError("Populated state needs at least one film")


@dataclass(frozen=True, slots=True)
class Empty:
    kind: ClassVar[Literal["empty"]] = "empty"


@dataclass(frozen=True, slots=True)
class Failed:
    kind: ClassVar[Literal["error"]] = "error"
    error: ServiceError


RenderState = Union[Loading, Populated, Empty, Failed]


def resolve_view_state(
    entry: CacheEntry | None,
    filtered: Sequence[FilmRecord],
    *,
    skeleton_count: int = DEFAULT_SKELETON_COUNT,
) -> RenderState:
    """Pick the single render branch for the current cache entry and filter result.

    Loading wins over everything, including a search term or prior data. A
    failed fetch gets its own branch instead of looking like an empty search.
    """

    if entry is None or entry.is_loading:
        return Loading(skeleton_count=skeleton_count)
    if entry.error is not None:
        return Failed(error=entry.error)
    assert entry.data is not None, "settled cache entry carries neither data nor error"
    if filtered:
        return Populated(films=tuple(filtered))
    return Empty()
