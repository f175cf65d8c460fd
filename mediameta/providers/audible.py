"""Audible catalog provider for audio book metadata."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

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
from mediameta.providers.pagination import PAGE_SIZE, zero_based_page
from mediameta.schema.base import UpstreamModel
from mediameta.schema.media import AudioBookSpecifics, MediaRecord

LOCALES = locale_table(
    {
        "au": "co.au",
        "ca": "ca",
        "de": "de",
        "es": "es",
        "fr": "fr",
        "in": "co.in",
        "it": "it",
        "jp": "co.jp",
        "gb": "co.uk",
        "us": "com",
    }
)
RESPONSE_GROUPS = (
    "contributors",
    "category_ladders",
    "media",
    "product_attrs",
    "product_extended_attrs",
)
IMAGE_SIZE = "2400"
SORT_BY = "Relevance"


class NamedObject(UpstreamModel):
    name: str


class AudiblePoster(UpstreamModel):
    image: str | None = Field(default=None, alias=IMAGE_SIZE)


class AudibleCategoryLadder(UpstreamModel):
    ladder: list[NamedObject] = Field(default_factory=list)


class AudibleItem(UpstreamModel):
    """Product shape returned by the catalog products endpoint."""
    asin: str | None = None
    title: str
    authors: list[NamedObject] | None = None
    narrators: list[NamedObject] | None = None
    product_images: AudiblePoster = Field(default_factory=AudiblePoster)
    merchandising_summary: str | None = None
    publisher_summary: str | None = None
    release_date: str | None = None
    runtime_length_min: int | None = None
    category_ladders: list[AudibleCategoryLadder] | None = None


class AudibleSearchResponse(UpstreamModel):
    total_results: int = Field(ge=0)
    products: list[AudibleItem] = Field(default_factory=list)


class AudibleItemResponse(UpstreamModel):
    product: AudibleItem


def base_url(suffix: str) -> str:
    return f"https://api.audible.{suffix}/1.0/catalog/products/"


def build_primary_query() -> dict[str, Any]:
    """Auxiliary data groups and image size requested for every product."""
    return {
        "response_groups": ",".join(RESPONSE_GROUPS),
        "image_sizes": IMAGE_SIZE,
    }


def build_search_query(query: str, page: int) -> dict[str, Any]:
    """Search parameters for a 1-based page; Audible pages are 0-based."""
    return {
        "title": query,
        "num_results": PAGE_SIZE,
        "page": zero_based_page(page),
        "products_sort_by": SORT_BY,
        **build_primary_query(),
    }


class AudibleProvider(MediaProvider):
    """Audible catalog adapter; the region picks the storefront domain."""
    source = MediaSource.AUDIBLE
    media_kind = MediaKind.AUDIO_BOOK
    locales = LOCALES
    default_locale = "us"

    def __init__(self, locale: str | None = None, **kwargs: Any) -> None:
        super().__init__(settings.audible_locale if locale is None else locale, **kwargs)
        self.base_url = base_url(self.region)

    def search_url(self) -> str:
        return self.base_url

    def details_url(self, identifier: str) -> str:
        return f"{self.base_url}{quote(identifier, safe='')}"

    def build_search_query(self, query: str, page: int) -> dict[str, Any]:
        return build_search_query(query, page)

    def build_details_query(self) -> dict[str, Any]:
        return build_primary_query()

    def parse_search_payload(self, payload: Any) -> tuple[int, list[AudibleItem]]:
        search = parse_shape(AudibleSearchResponse, payload)
        return search.total_results, search.products

    def parse_details_payload(self, payload: Any) -> AudibleItem:
        return parse_shape(AudibleItemResponse, payload).product

    def normalize(self, item: AudibleItem) -> MediaRecord:
        publish_year, publish_date = resolve_dates(item.release_date)
        creators = creators_from_groups(
            [
                ([a.name for a in item.authors or []], "Author"),
                ([n.name for n in item.narrators or []], "Narrator"),
            ]
        )
        genres = flatten_genres(
            [node.name for node in ladder.ladder] for ladder in item.category_ladders or []
        )
        return MediaRecord(
            identifier=require_identifier(item.asin, provider=self.source.value),
            source=self.source,
            media_kind=self.media_kind,
            title=item.title,
            description=pick_description(item.publisher_summary, item.merchandising_summary),
            creators=creators,
            genres=genres,
            publish_year=publish_year,
            publish_date=publish_date,
            images=remote_images(item.product_images.image),
            specifics=AudioBookSpecifics(runtime=item.runtime_length_min),
        )
