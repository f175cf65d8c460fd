"""Provider contract and the shared search/details pipeline."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

import httpx

from mediameta.models.media import MediaKind, MediaSource
from mediameta.providers.errors import NotFoundError
from mediameta.providers.http import build_client, get_json
from mediameta.providers.locale import resolve_locale
from mediameta.providers.normalize import narrow_to_search_item
from mediameta.providers.pagination import PAGE_SIZE, assemble_results, validate_page
from mediameta.schema.media import MediaRecord
from mediameta.schema.search import SearchResultEnvelope

logger = logging.getLogger("mediameta.providers")


class MediaProvider:
    """Uniform interface for one upstream metadata catalog.

    Subclasses declare their static configuration as class attributes and
    implement the query-building, shape-parsing and normalization hooks;
    ``search`` and ``details`` drive those hooks identically for every
    provider. Instances hold no per-call state, so one instance can serve
    any number of concurrent calls.
    """
    source: ClassVar[MediaSource]
    media_kind: ClassVar[MediaKind]
    locales: ClassVar[Mapping[str, str]]
    default_locale: ClassVar[str] = "us"
    page_size: ClassVar[int] = PAGE_SIZE

    def __init__(self, locale: str | None = None, *, client: httpx.AsyncClient | None = None) -> None:
        self.locale = self.default_locale if locale is None else locale
        self.region = resolve_locale(self.locales, self.locale, provider=self.source.value)
        self._owns_client = client is None
        self._client = client or build_client()

    @classmethod
    def supported_languages(cls) -> list[str]:
        return list(cls.locales)

    @classmethod
    def default_language(cls) -> str:
        return cls.default_locale

    def parse_identifier(self, identifier: str) -> str:
        """Normalize external identifiers before lookup."""
        return identifier.strip()

    def request_headers(self) -> dict[str, str]:
        """Provider-specific headers merged over the static defaults."""
        return {}

    async def search(self, query: str, page: int | None = None) -> SearchResultEnvelope:
        """Search the upstream catalog and return one page of results."""
        page = validate_page(page)
        payload = await get_json(
            self._client,
            self.search_url(),
            params=self.build_search_query(query, page),
            headers=self.request_headers(),
        )
        total, raw_items = self.parse_search_payload(payload)
        items = [narrow_to_search_item(self.normalize(raw)) for raw in raw_items]
        logger.debug(
            "%s search %r page %s: %s of %s results", self.source.value, query, page, len(items), total
        )
        return assemble_results(total, items, page, self.page_size)

    async def details(self, identifier: str) -> MediaRecord:
        """Fetch and normalize a single record by its upstream identifier."""
        token = self.parse_identifier(identifier)
        if not token:
            raise NotFoundError(f"{self.source.value} identifier is empty")
        payload = await get_json(
            self._client,
            self.details_url(token),
            params=self.build_details_query(),
            headers=self.request_headers(),
        )
        return self.normalize(self.parse_details_payload(payload))

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "MediaProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def search_url(self) -> str:
        raise NotImplementedError

    def details_url(self, identifier: str) -> str:
        raise NotImplementedError

    def build_search_query(self, query: str, page: int) -> dict[str, Any]:
        raise NotImplementedError

    def build_details_query(self) -> dict[str, Any]:
        return {}

    def parse_search_payload(self, payload: Any) -> tuple[int, Sequence[Any]]:
        """Return the upstream total and the raw items of a search response."""
        raise NotImplementedError

    def parse_details_payload(self, payload: Any) -> Any:
        raise NotImplementedError

    def normalize(self, item: Any) -> MediaRecord:
        """Map one validated upstream item to a canonical record."""
        raise NotImplementedError
