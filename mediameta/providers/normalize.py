"""Shared normalization rules for mapping upstream items to canonical records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from mediameta.models.media import ImageLocationKind
from mediameta.providers.errors import NormalizationAssertionFailure, UpstreamShapeError
from mediameta.schema.media import MediaCreator, MediaImage, MediaRecord
from mediameta.schema.search import SearchResultItem
from mediameta.utils.datetime import convert_date_to_year, convert_string_to_date

logger = logging.getLogger("mediameta.providers")


def require_identifier(value: object, *, provider: str) -> str:
    """Return the upstream identifier verbatim; missing or blank IDs fail the item."""
    if value is None:
        raise UpstreamShapeError(f"{provider} item is missing its identifier")
    identifier = str(value)
    if not identifier.strip():
        raise UpstreamShapeError(f"{provider} item has an empty identifier")
    return identifier


def remote_images(*urls: str | None) -> list[MediaImage]:
    return [
        MediaImage(location_kind=ImageLocationKind.REMOTE_URL, value=url)
        for url in urls
        if url
    ]


def resolve_dates(raw: str | None) -> tuple[int | None, date | None]:
    """Derive (publish_year, publish_date) from one raw date string."""
    value = raw or ""
    return convert_date_to_year(value), convert_string_to_date(value)


def creators_from_groups(
    groups: Iterable[tuple[Iterable[str] | None, str]],
    images: dict[str, list[str]] | None = None,
) -> list[MediaCreator]:
    """Concatenate (names, role) groups in order, one creator per name."""
    images = images or {}
    creators: list[MediaCreator] = []
    for names, role in groups:
        for name in names or ():
            creators.append(MediaCreator(name=name, role=role, image_urls=images.get(name, [])))
    return creators


def pick_description(primary: str | None, secondary: str | None) -> str | None:
    return primary if primary is not None else secondary


def flatten_genres(groups: Iterable[Iterable[str]] | None) -> list[str]:
    """Flatten label groups into unique genre names.

    Duplicates are removed by value; callers must not rely on the order.
    """
    names = (name for group in groups or () for name in group)
    return list(dict.fromkeys(names))


def narrow_to_search_item(record: MediaRecord) -> SearchResultItem:
    """Project a full record onto the list-view shape."""
    urls: list[str] = []
    for image in record.images:
        if image.location_kind is not ImageLocationKind.REMOTE_URL:
            logger.error(
                "Content-addressed image in %s search result %s",
                record.source.value,
                record.identifier,
            )
            raise NormalizationAssertionFailure(
                f"{record.source.value} search result {record.identifier} carries a "
                f"{image.location_kind.value} image"
            )
        urls.append(image.value)
    return SearchResultItem(
        identifier=record.identifier,
        media_kind=record.media_kind,
        title=record.title,
        images=urls,
        publish_year=record.publish_year,
    )
