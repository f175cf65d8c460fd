from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlparse

from pydantic import Field

from mediameta.core.config import settings
from mediameta.models.media import MediaKind, MediaSource
from mediameta.providers.base import MediaProvider
from mediameta.providers.errors import ConfigurationError
from mediameta.providers.http import parse_shape
from mediameta.providers.locale import locale_table
from mediameta.providers.normalize import (
    creators_from_groups,
    flatten_genres,
    pick_description,
    remote_images,
    require_identifier,
    resolve_dates,
)
from mediameta.schema.base import UpstreamModel
from mediameta.schema.media import MediaRecord, MovieSpecifics

API_BASE = "https://api.themoviedb.org/3"
IMAGE_BASE = "https://image.tmdb.org/t/p/original"
LOCALES = locale_table(
    {
        "au": "en-AU",
        "ca": "en-CA",
        "de": "de-DE",
        "es": "es-ES",
        "fr": "fr-FR",
        "in": "en-IN",
        "it": "it-IT",
        "jp": "ja-JP",
        "gb": "en-GB",
        "us": "en-US",
    }
)


class TMDBGenre(UpstreamModel):
    name: str


class TMDBPerson(UpstreamModel):
    name: str
    job: str | None = None
    profile_path: str | None = None


class TMDBCredits(UpstreamModel):
    cast: list[TMDBPerson] = Field(default_factory=list)
    crew: list[TMDBPerson] = Field(default_factory=list)


class TMDBMovie(UpstreamModel):
    id: int | str | None = None
    title: str
    overview: str | None = None
    tagline: str | None = None
    poster_path: str | None = None
    release_date: str | None = None
    runtime: int | None = None
    genres: list[TMDBGenre] | None = None
    credits: TMDBCredits | None = None


class TMDBSearchResponse(UpstreamModel):
    total_results: int = Field(ge=0)
    results: list[TMDBMovie] = Field(default_factory=list)


def image_url(path: str | None) -> str | None:
    return f"{IMAGE_BASE}{path}" if path else None


def build_search_query(query: str, page: int, *, language: str) -> dict[str, Any]:
    """TMDB pages are 1-based and fixed at 20 results."""
    return {
        "query": query,
        "page": page,
        "include_adult": "false",
        "language": language,
    }


def build_details_query(*, language: str) -> dict[str, Any]:
    return {"append_to_response": "credits", "language": language}


class TMDBProvider(MediaProvider):
    """The Movie Database adapter for movie metadata."""
    source = MediaSource.TMDB
    media_kind = MediaKind.MOVIE
    locales = LOCALES
    default_locale = "us"

    def __init__(
        self,
        locale: str | None = None,
        *,
        api_key: str | None = None,
        auth_token: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.api_key = api_key or settings.tmdb_api_key
        self.auth_token = auth_token or settings.tmdb_api_auth_header
        if not (self.auth_token or self.api_key):
            raise ConfigurationError("TMDB credentials missing; set TMDB_API_AUTH_HEADER or TMDB_API_KEY")
        super().__init__(settings.tmdb_locale if locale is None else locale, **kwargs)

    def parse_identifier(self, identifier: str) -> str:
        if identifier.startswith("http"):
            parsed = urlparse(identifier)
            parts = parsed.path.strip("/").split("/")
            if len(parts) >= 2 and parts[0] == "movie":
                return parts[1].split("-", 1)[0]
        return super().parse_identifier(identifier)

    def _auth(self) -> tuple[dict[str, str], dict[str, str]]:
        headers: dict[str, str] = {}
        params: dict[str, str] = {}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        else:
            params["api_key"] = self.api_key or ""
        return headers, params

    def request_headers(self) -> dict[str, str]:
        return self._auth()[0]

    def search_url(self) -> str:
        return f"{API_BASE}/search/movie"

    def details_url(self, identifier: str) -> str:
        return f"{API_BASE}/movie/{quote(identifier, safe='')}"

    def build_search_query(self, query: str, page: int) -> dict[str, Any]:
        return {**self._auth()[1], **build_search_query(query, page, language=self.region)}

    def build_details_query(self) -> dict[str, Any]:
        return {**self._auth()[1], **build_details_query(language=self.region)}

    def parse_search_payload(self, payload: Any) -> tuple[int, list[TMDBMovie]]:
        response = parse_shape(TMDBSearchResponse, payload)
        return response.total_results, response.results

    def parse_details_payload(self, payload: Any) -> TMDBMovie:
        return parse_shape(TMDBMovie, payload)

    def normalize(self, item: TMDBMovie) -> MediaRecord:
        publish_year, publish_date = resolve_dates(item.release_date)
        credits = item.credits or TMDBCredits()
        directors = [member for member in credits.crew if member.job == "Director"]
        profiles = {
            member.name: [url]
            for member in [*directors, *credits.cast]
            if (url := image_url(member.profile_path))
        }
        creators = creators_from_groups(
            [
                ([member.name for member in directors], "Director"),
                ([member.name for member in credits.cast], "Actor"),
            ],
            images=profiles,
        )
        return MediaRecord(
            identifier=require_identifier(item.id, provider=self.source.value),
            source=self.source,
            media_kind=self.media_kind,
            title=item.title,
            description=pick_description(item.overview, item.tagline),
            creators=creators,
            genres=flatten_genres([[genre.name for genre in item.genres or []]]),
            publish_year=publish_year,
            publish_date=publish_date,
            images=remote_images(image_url(item.poster_path)),
            specifics=MovieSpecifics(runtime=item.runtime),
        )
