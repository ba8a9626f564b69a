"""Pydantic models describing film payloads."""

from __future__ import annotations

from urllib.parse import quote

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class FilmRecord(BaseModel):
    """A single film row as returned by the data service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str = Field(min_length=1)
    genre: str = ""
    rating: float = Field(ge=0.0, le=10.0)
    duration_min: int = Field(
        gt=0, validation_alias=AliasChoices("duration_min", "durationMin")
    )
    poster_url: str | None = Field(
        default=None, validation_alias=AliasChoices("poster_url", "posterUrl")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # Services hand out both integer and uuid primary keys.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("genre", mode="before")
    @classmethod
    def _coerce_genre(cls, value: object) -> object:
        if value is None:
            return ""
        return value

    @field_validator("poster_url", mode="before")
    @classmethod
    def _blank_poster(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def rating_label(self) -> str:
        """Rating formatted to one decimal place."""

        return f"{self.rating:.1f}"

    @property
    def duration_label(self) -> str:
        return f"{self.duration_min} min"

    @property
    def detail_path(self) -> str:
        """Navigation route of the per-film detail view."""

        return f"/films/{quote(self.id, safe='')}"

    def to_payload(self) -> dict[str, object]:
        """Return the JSON shape exposed by the catalog API."""

        return {
            "id": self.id,
            "title": self.title,
            "genre": self.genre,
            "rating": self.rating,
            "durationMin": self.duration_min,
            "posterUrl": self.poster_url,
            "href": self.detail_path,
        }
