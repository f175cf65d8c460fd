"""Google Books provider for book metadata."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, quote, urlparse

from pydantic import Field

from mediameta.core.config import settings
from mediameta.models.media import MediaKind, MediaSource
from mediameta.providers.base import MediaProvider
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
from mediameta.providers.pagination import PAGE_SIZE, page_offset
from mediameta.schema.base import UpstreamModel
from mediameta.schema.media import BookSpecifics, MediaRecord

VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"
LOCALES = locale_table(
    {
        "au": "AU",
        "ca": "CA",
        "de": "DE",
        "es": "ES",
        "fr": "FR",
        "in": "IN",
        "it": "IT",
        "jp": "JP",
        "gb": "GB",
        "us": "US",
    }
)
CATEGORY_SEPARATOR = "/"


class GoogleImageLinks(UpstreamModel):
    extra_large: str | None = Field(default=None, alias="extraLarge")
    large: str | None = None
    medium: str | None = None
    small: str | None = None
    thumbnail: str | None = None
    small_thumbnail: str | None = Field(default=None, alias="smallThumbnail")

    def largest(self) -> str | None:
        """Return the highest-resolution link present."""
        for url in (self.extra_large, self.large, self.medium, self.small, self.thumbnail, self.small_thumbnail):
            if url:
                return url
        return None


class GoogleVolumeInfo(UpstreamModel):
    title: str
    authors: list[str] | None = None
    publisher: str | None = None
    published_date: str | None = Field(default=None, alias="publishedDate")
    description: str | None = None
    page_count: int | None = Field(default=None, alias="pageCount")
    categories: list[str] | None = None
    image_links: GoogleImageLinks = Field(default_factory=GoogleImageLinks, alias="imageLinks")


class GoogleSearchInfo(UpstreamModel):
    text_snippet: str | None = Field(default=None, alias="textSnippet")


class GoogleVolume(UpstreamModel):
    id: str | None = None
    volume_info: GoogleVolumeInfo = Field(alias="volumeInfo")
    search_info: GoogleSearchInfo | None = Field(default=None, alias="searchInfo")


class GoogleVolumesResponse(UpstreamModel):
    total_items: int = Field(ge=0, alias="totalItems")
    items: list[GoogleVolume] = Field(default_factory=list)


def build_search_query(
    query: str, page: int, *, country: str, api_key: str | None = None
) -> dict[str, Any]:
    """Search parameters for a 1-based page; Google Books pages by item offset."""
    params: dict[str, Any] = {
        "q": query,
        "startIndex": page_offset(page, PAGE_SIZE),
        "maxResults": PAGE_SIZE,
        "orderBy": "relevance",
        "printType": "books",
        "country": country,
    }
    if api_key:
        params["key"] = api_key
    return params


def build_details_query(*, country: str, api_key: str | None = None) -> dict[str, Any]:
    params: dict[str, Any] = {"country": country}
    if api_key:
        params["key"] = api_key
    return params


def split_categories(categories: list[str] | None) -> list[list[str]]:
    """Split hierarchical categories such as ``Fiction / Fantasy`` into label groups."""
    return [
        [part.strip() for part in category.split(CATEGORY_SEPARATOR) if part.strip()]
        for category in categories or []
    ]


class GoogleBooksProvider(MediaProvider):
    """Google Books API adapter for volume data."""
    source = MediaSource.GOOGLE_BOOKS
    media_kind = MediaKind.BOOK
    locales = LOCALES
    default_locale = "us"

    def __init__(self, locale: str | None = None, *, api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(settings.google_books_locale if locale is None else locale, **kwargs)
        self.api_key = api_key or settings.google_books_api_key

    def parse_identifier(self, identifier: str) -> str:
        """Normalize Google Books identifiers, accepting URLs."""
        if identifier.startswith("http"):
            parsed = urlparse(identifier)
            qs = parse_qs(parsed.query)
            if "id" in qs:
                return qs["id"][0]
            parts = [p for p in parsed.path.split("/") if p]
            if len(parts) >= 2 and parts[-2] == "volumes":
                return parts[-1]
        return super().parse_identifier(identifier)

    def search_url(self) -> str:
        return VOLUMES_URL

    def details_url(self, identifier: str) -> str:
        return f"{VOLUMES_URL}/{quote(identifier, safe='')}"

    def build_search_query(self, query: str, page: int) -> dict[str, Any]:
        return build_search_query(query, page, country=self.region, api_key=self.api_key)

    def build_details_query(self) -> dict[str, Any]:
        return build_details_query(country=self.region, api_key=self.api_key)

    def parse_search_payload(self, payload: Any) -> tuple[int, list[GoogleVolume]]:
        response = parse_shape(GoogleVolumesResponse, payload)
        return response.total_items, response.items

    def parse_details_payload(self, payload: Any) -> GoogleVolume:
        return parse_shape(GoogleVolume, payload)

    def normalize(self, item: GoogleVolume) -> MediaRecord:
        info = item.volume_info
        publish_year, publish_date = resolve_dates(info.published_date)
        creators = creators_from_groups(
            [
                (info.authors, "Author"),
                ([info.publisher] if info.publisher else None, "Publisher"),
            ]
        )
        snippet = item.search_info.text_snippet if item.search_info else None
        return MediaRecord(
            identifier=require_identifier(item.id, provider=self.source.value),
            source=self.source,
            media_kind=self.media_kind,
            title=info.title,
            description=pick_description(info.description, snippet),
            creators=creators,
            genres=flatten_genres(split_categories(info.categories)),
            publish_year=publish_year,
            publish_date=publish_date,
            images=remote_images(info.image_links.largest()),
            specifics=BookSpecifics(pages=info.page_count, publisher=info.publisher),
        )
