"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.models import FilmRecord  # noqa: E402


def make_film(film_id: str, title: str, genre: str, rating: float, **extra) -> FilmRecord:
    """Build a film record with sensible defaults for the remaining fields."""

    data = {
        "id": film_id,
        "title": title,
        "genre": genre,
        "rating": rating,
        "duration_min": extra.pop("duration_min", 120),
    }
    data.update(extra)
    return FilmRecord.model_validate(data)


@pytest.fixture
def dune_and_clue() -> list[FilmRecord]:
    return [
        make_film("1", "Dune", "Sci-Fi", 8.5, duration_min=155),
        make_film("2", "Clue", "Comedy", 7.0, duration_min=94),
    ]
