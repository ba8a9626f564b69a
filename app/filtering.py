"""Search filtering for the film catalog."""

from __future__ import annotations

from typing import Sequence

from .models import FilmRecord


def filter_films(films: Sequence[FilmRecord], term: str) -> list[FilmRecord]:
    """Return films whose title or genre contains ``term``, ignoring case.

    The term is not trimmed, so whitespace takes part in matching. An empty
    term keeps every film. Input order is preserved and a miss yields ``[]``.
    """

    if not term:
        return list(films)
    needle = term.casefold()
    return [
        film
        for film in films
        if needle in film.title.casefold() or needle in film.genre.casefold()
    ]
