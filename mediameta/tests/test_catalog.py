"""Fan-out catalog tests: retries, per-source failures and defect propagation."""

from __future__ import annotations

from typing import Any

import pytest

from mediameta.catalog import MetadataCatalog
from mediameta.models.media import ImageLocationKind, MediaKind, MediaSource
from mediameta.providers import AudibleProvider, GoogleBooksProvider, build_provider
from mediameta.providers.errors import (
    ConfigurationError,
    NormalizationAssertionFailure,
    NotFoundError,
    UpstreamTransportError,
)
from mediameta.providers.observability import ProviderMonitor
from mediameta.schema.media import AudioBookSpecifics, MediaImage, MediaRecord
from mediameta.tests.utils import FakeUpstream, json_response

AUDIBLE_PATH = "/1.0/catalog/products/"
VOLUMES_PATH = "/books/v1/volumes"


def _audible_product(asin: str) -> dict[str, Any]:
    return {"asin": asin, "title": f"Audio {asin}", "release_date": "2019-01-01"}


def _volume(volume_id: str) -> dict[str, Any]:
    return {"id": volume_id, "volumeInfo": {"title": f"Book {volume_id}", "publishedDate": "2018"}}


def _catalog(upstream: FakeUpstream, **kwargs: Any) -> MetadataCatalog:
    client = upstream.client()
    providers = [AudibleProvider(client=client), GoogleBooksProvider(client=client)]
    kwargs.setdefault("retry_max_wait", 0)
    return MetadataCatalog(providers, **kwargs)


@pytest.mark.asyncio
async def test_catalog_search_fans_out_across_providers(upstream: FakeUpstream) -> None:
    upstream.add(AUDIBLE_PATH, json_response({"total_results": 1, "products": [_audible_product("B01")]}))
    upstream.add(VOLUMES_PATH, json_response({"totalItems": 2, "items": [_volume("v1"), _volume("v2")]}))
    catalog = _catalog(upstream)

    result = await catalog.search("dune")

    assert result.errors == {}
    assert set(result.results) == {MediaSource.AUDIBLE, MediaSource.GOOGLE_BOOKS}
    assert result.total == 3
    assert [item.identifier for item in result.items] == ["B01", "v1", "v2"]
    assert result.results[MediaSource.AUDIBLE].items[0].media_kind is MediaKind.AUDIO_BOOK
    assert result.results[MediaSource.GOOGLE_BOOKS].items[0].media_kind is MediaKind.BOOK


@pytest.mark.asyncio
async def test_catalog_reports_failed_provider_without_failing_search(upstream: FakeUpstream) -> None:
    upstream.add(AUDIBLE_PATH, json_response({"message": "down"}, status=503))
    upstream.add(VOLUMES_PATH, json_response({"totalItems": 1, "items": [_volume("v1")]}))
    catalog = _catalog(upstream, retry_attempts=2)

    result = await catalog.search("dune", sources=["audible", MediaSource.GOOGLE_BOOKS])

    assert MediaSource.AUDIBLE in result.errors
    assert "503" in result.errors[MediaSource.AUDIBLE]
    assert result.results[MediaSource.GOOGLE_BOOKS].total == 1
    assert len(upstream.calls(AUDIBLE_PATH)) == 2


@pytest.mark.asyncio
async def test_catalog_retries_transport_errors(upstream: FakeUpstream) -> None:
    upstream.add(
        AUDIBLE_PATH,
        json_response({"message": "busy"}, status=502),
        json_response({"total_results": 1, "products": [_audible_product("B01")]}),
    )
    catalog = _catalog(upstream, retry_attempts=3)

    result = await catalog.search("dune", sources=[MediaSource.AUDIBLE])

    assert result.errors == {}
    assert result.results[MediaSource.AUDIBLE].items[0].identifier == "B01"
    assert len(upstream.calls(AUDIBLE_PATH)) == 2


@pytest.mark.asyncio
async def test_catalog_details_does_not_retry_not_found(upstream: FakeUpstream) -> None:
    catalog = _catalog(upstream, retry_attempts=3)

    with pytest.raises(NotFoundError):
        await catalog.details(MediaSource.AUDIBLE, "nonexistent-id")
    assert len(upstream.calls(f"{AUDIBLE_PATH}nonexistent-id")) == 1


@pytest.mark.asyncio
async def test_catalog_details_returns_record(upstream: FakeUpstream) -> None:
    upstream.add(f"{VOLUMES_PATH}/v1", json_response(_volume("v1")))
    catalog = _catalog(upstream)

    record = await catalog.details("google_books", "v1")

    assert record.identifier == "v1"
    assert record.publish_year == 2018
    snapshot = await catalog.monitor.snapshot()
    assert snapshot["google_books"]["operations"]["details"]["succeeded"] == 1


@pytest.mark.asyncio
async def test_catalog_details_exhausts_retries(upstream: FakeUpstream) -> None:
    upstream.add(f"{AUDIBLE_PATH}B01", json_response({}, status=500))
    catalog = _catalog(upstream, retry_attempts=2, monitor=ProviderMonitor(circuit_threshold=5))

    with pytest.raises(UpstreamTransportError):
        await catalog.details(MediaSource.AUDIBLE, "B01")
    assert len(upstream.calls(f"{AUDIBLE_PATH}B01")) == 2


@pytest.mark.asyncio
async def test_catalog_propagates_normalization_defects(
    upstream: FakeUpstream, monkeypatch: pytest.MonkeyPatch
) -> None:
    upstream.add(AUDIBLE_PATH, json_response({"total_results": 1, "products": [_audible_product("B01")]}))
    catalog = _catalog(upstream)

    def _content_addressed(self: AudibleProvider, item: Any) -> MediaRecord:
        return MediaRecord(
            identifier=item.asin,
            source=MediaSource.AUDIBLE,
            media_kind=MediaKind.AUDIO_BOOK,
            title=item.title,
            images=[MediaImage(location_kind=ImageLocationKind.CONTENT_ADDRESSED, value="covers/b01")],
            specifics=AudioBookSpecifics(),
        )

    monkeypatch.setattr(AudibleProvider, "normalize", _content_addressed)

    with pytest.raises(NormalizationAssertionFailure):
        await catalog.search("dune", sources=[MediaSource.AUDIBLE])


def test_catalog_rejects_duplicate_and_unknown_sources(upstream: FakeUpstream) -> None:
    client = upstream.client()
    with pytest.raises(ConfigurationError):
        MetadataCatalog([AudibleProvider(client=client), AudibleProvider("gb", client=client)])

    catalog = MetadataCatalog([AudibleProvider(client=client)])
    assert catalog.sources == [MediaSource.AUDIBLE]
    with pytest.raises(ConfigurationError):
        catalog.provider(MediaSource.TMDB)
    with pytest.raises(ConfigurationError):
        catalog.provider("spotify")


def test_build_provider_selects_adapter_by_source(upstream: FakeUpstream) -> None:
    provider = build_provider("AUDIBLE", locale="ca", client=upstream.client())

    assert isinstance(provider, AudibleProvider)
    assert provider.base_url == "https://api.audible.ca/1.0/catalog/products/"
    with pytest.raises(ValueError):
        build_provider("spotify")


@pytest.mark.asyncio
async def test_catalog_closes_owned_clients() -> None:
    provider = AudibleProvider()
    catalog = MetadataCatalog([provider])

    await catalog.aclose()

    assert provider._client.is_closed
