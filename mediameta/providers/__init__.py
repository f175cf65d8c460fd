"""Provider registry for upstream metadata catalogs."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

from mediameta.models.media import MediaSource
from mediameta.providers.audible import AudibleProvider
from mediameta.providers.base import MediaProvider
from mediameta.providers.google_books import GoogleBooksProvider
from mediameta.providers.tmdb import TMDBProvider

PROVIDERS = MappingProxyType(
    {
        MediaSource.AUDIBLE: AudibleProvider,
        MediaSource.GOOGLE_BOOKS: GoogleBooksProvider,
        MediaSource.TMDB: TMDBProvider,
    }
)


def build_provider(source: MediaSource | str, **kwargs: Any) -> MediaProvider:
    """Construct the adapter registered for a source name."""
    try:
        provider_cls = PROVIDERS[MediaSource(source.lower())]
    except ValueError:
        raise ValueError(f"Unsupported source {source}") from None
    return provider_cls(**kwargs)


__all__ = [
    "PROVIDERS",
    "AudibleProvider",
    "GoogleBooksProvider",
    "MediaProvider",
    "TMDBProvider",
    "build_provider",
]
