"""Read-only client for the remote films collection."""

from __future__ import annotations

import logging
from typing import Any, Literal

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import FilmRecord

logger = logging.getLogger(__name__)

ErrorKind = Literal["transport", "auth", "server", "payload"]


class ServiceError(Exception):
    """Raised when the data service cannot deliver the film collection."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = "server",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"ServiceError({self.message!r}, kind={self.kind!r}, "
            f"status_code={self.status_code!r})"
        )


class FilmDataService:
    """Thin wrapper around the PostgREST endpoint serving the films table."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": f"{self._settings.app_name} (reelview)",
        }
        key = self._settings.data_service_key
        if key:
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        return headers

    @property
    def films_path(self) -> str:
        return f"/rest/v1/{self._settings.films_table}"

    async def fetch_all(self) -> list[FilmRecord]:
        """Return every film ordered by rating, highest first.

        The order is the service's own; ties are left as delivered.
        """

        params = {"select": "*", "order": "rating.desc"}
        try:
            response = await self._client.get(
                self.films_path, params=params, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            logger.warning("Film fetch failed before a response arrived: %s", exc)
            raise ServiceError(
                "Unable to reach the film data service", kind="transport"
            ) from exc

        if response.status_code in (401, 403):
            logger.warning(
                "Film data service rejected credentials (%s)", response.status_code
            )
            raise ServiceError(
                "The film data service rejected our credentials",
                kind="auth",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            logger.warning(
                "Film data service returned %s: %s",
                response.status_code,
                response.text,
            )
            raise ServiceError(
                "The film data service returned an error",
                kind="server",
                status_code=response.status_code,
            )

        return self._parse_rows(response)

    @staticmethod
    def _parse_rows(response: httpx.Response) -> list[FilmRecord]:
        try:
            payload: Any = response.json()
        except ValueError as exc:
            logger.warning("Film data service sent a non-JSON body")
            raise ServiceError(
                "The film data service sent an unreadable response",
                kind="payload",
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, list):
            logger.warning(
                "Expected a list of films, got %s", type(payload).__name__
            )
            raise ServiceError(
                "The film data service sent an unexpected payload",
                kind="payload",
                status_code=response.status_code,
            )

        try:
            films = [FilmRecord.model_validate(row) for row in payload]
        except ValidationError as exc:
            logger.warning("Film rows failed validation: %s", exc)
            raise ServiceError(
                "The film data service sent malformed film rows",
                kind="payload",
                status_code=response.status_code,
            ) from exc

        logger.info("Fetched %d films", len(films))
        return films
