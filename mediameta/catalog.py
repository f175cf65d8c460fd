"""Fan-out catalog that queries several providers and applies the retry policy.

Implementation notes:
- Adapters never retry; transport failures are retried here with tenacity.
- One provider failing a search never fails the whole fan-out; its error is
  reported next to the envelopes of the providers that succeeded.
- Normalization assertion failures are defects and always propagate.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from mediameta.core.config import settings
from mediameta.models.media import MediaSource
from mediameta.providers.base import MediaProvider
from mediameta.providers.errors import ConfigurationError, ProviderError, UpstreamTransportError
from mediameta.providers.observability import ProviderMonitor
from mediameta.providers.pagination import validate_page
from mediameta.schema.media import MediaRecord
from mediameta.schema.search import SearchResultEnvelope, SearchResultItem

logger = logging.getLogger("mediameta.catalog")


@dataclass(slots=True)
class CatalogSearchResult:
    """Per-source envelopes and failures for one fan-out search."""
    query: str
    page: int
    results: dict[MediaSource, SearchResultEnvelope] = field(default_factory=dict)
    errors: dict[MediaSource, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(envelope.total for envelope in self.results.values())

    @property
    def items(self) -> list[SearchResultItem]:
        return [item for envelope in self.results.values() for item in envelope.items]


class MetadataCatalog:
    """Treat a set of provider adapters as one searchable catalog."""

    def __init__(
        self,
        providers: Iterable[MediaProvider],
        *,
        monitor: ProviderMonitor | None = None,
        retry_attempts: int | None = None,
        retry_max_wait: float | None = None,
    ) -> None:
        self._providers: dict[MediaSource, MediaProvider] = {}
        for provider in providers:
            if provider.source in self._providers:
                raise ConfigurationError(f"Duplicate provider for {provider.source.value}")
            self._providers[provider.source] = provider
        self.monitor = monitor or ProviderMonitor(circuit_threshold=settings.catalog_circuit_threshold)
        self.retry_attempts = retry_attempts or settings.catalog_retry_attempts
        self.retry_max_wait = (
            settings.catalog_retry_max_wait_seconds if retry_max_wait is None else retry_max_wait
        )

    @property
    def sources(self) -> list[MediaSource]:
        return list(self._providers)

    def provider(self, source: MediaSource | str) -> MediaProvider:
        try:
            return self._providers[MediaSource(source)]
        except (KeyError, ValueError):
            raise ConfigurationError(f"No provider configured for {source}") from None

    async def _retrying(self, func: Callable[[], Awaitable[Any]]) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential_jitter(initial=0.5, max=self.retry_max_wait),
            retry=retry_if_exception_type(UpstreamTransportError),
            reraise=True,
        ):
            with attempt:
                return await func()
        raise UpstreamTransportError("Unreachable")

    async def _call(
        self,
        provider: MediaProvider,
        operation: str,
        func: Callable[[], Awaitable[Any]],
        context: dict[str, Any],
    ) -> Any:
        return await self.monitor.track(
            provider.source.value,
            operation,
            lambda: self._retrying(func),
            context=context,
        )

    async def search(
        self,
        query: str,
        page: int | None = None,
        sources: Iterable[MediaSource | str] | None = None,
    ) -> CatalogSearchResult:
        """Search every selected provider concurrently."""
        page = validate_page(page)
        selected = [self.provider(source) for source in sources] if sources else list(self._providers.values())

        def _searcher(provider: MediaProvider) -> Callable[[], Awaitable[SearchResultEnvelope]]:
            return lambda: provider.search(query, page)

        outcomes = await asyncio.gather(
            *(
                self._call(provider, "search", _searcher(provider), {"query": query, "page": page})
                for provider in selected
            ),
            return_exceptions=True,
        )
        result = CatalogSearchResult(query=query, page=page)
        for provider, outcome in zip(selected, outcomes):
            if isinstance(outcome, ProviderError):
                logger.info("Search on %s failed: %s", provider.source.value, outcome)
                result.errors[provider.source] = str(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.results[provider.source] = outcome
        return result

    async def details(self, source: MediaSource | str, identifier: str) -> MediaRecord:
        """Fetch one record from a single provider; failures propagate."""
        provider = self.provider(source)
        return await self._call(
            provider,
            "details",
            lambda: provider.details(identifier),
            {"identifier": identifier},
        )

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()
