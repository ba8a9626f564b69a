import pytest
from pydantic import ValidationError

from app.models import FilmRecord


def test_film_record_accepts_service_row():
    film = FilmRecord.model_validate(
        {
            "id": 42,
            "title": "Arrival",
            "genre": "Sci-Fi",
            "rating": 7.94,
            "duration_min": 116,
            "poster_url": "https://example.com/arrival.jpg",
            "created_at": "2024-01-01T00:00:00Z",
        }
    )

    assert film.id == "42"
    assert film.rating_label == "7.9"
    assert film.duration_label == "116 min"
    assert film.detail_path == "/films/42"
    assert film.poster_url == "https://example.com/arrival.jpg"


def test_film_record_accepts_camel_case_fields():
    film = FilmRecord.model_validate(
        {
            "id": "abc",
            "title": "Heat",
            "genre": "Crime",
            "rating": 8,
            "durationMin": 170,
            "posterUrl": "",
        }
    )

    assert film.duration_min == 170
    assert film.poster_url is None
    assert film.rating_label == "8.0"


def test_film_record_is_frozen():
    film = FilmRecord(id="1", title="Dune", genre="Sci-Fi", rating=8.5, duration_min=155)

    with pytest.raises(ValidationError):
        film.title = "Dune: Part Two"


@pytest.mark.parametrize(
    "overrides",
    [
        {"rating": 10.5},
        {"rating": -1},
        {"duration_min": 0},
        {"title": ""},
    ],
)
def test_film_record_rejects_out_of_range_values(overrides):
    data = {"id": "1", "title": "Dune", "genre": "Sci-Fi", "rating": 8.5, "duration_min": 155}
    data.update(overrides)

    with pytest.raises(ValidationError):
        FilmRecord.model_validate(data)


def test_detail_path_quotes_identifier():
    film = FilmRecord(id="a/b c", title="Odd", genre="", rating=5, duration_min=90)

    assert film.detail_path == "/films/a%2Fb%20c"


def test_payload_uses_camel_case_keys():
    film = FilmRecord(id="1", title="Dune", genre=None, rating=8.5, duration_min=155)

    assert film.to_payload() == {
        "id": "1",
        "title": "Dune",
        "genre": "",
        "rating": 8.5,
        "durationMin": 155,
        "posterUrl": None,
        "href": "/films/1",
    }
