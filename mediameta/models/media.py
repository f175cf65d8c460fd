"""Enumerations shared by canonical media records."""

from __future__ import annotations

import enum


class MediaSource(str, enum.Enum):
    """Upstream catalogs with an adapter in this package."""
    AUDIBLE = "audible"
    GOOGLE_BOOKS = "google_books"
    TMDB = "tmdb"


class MediaKind(str, enum.Enum):
    """Media categories produced by the adapters."""
    AUDIO_BOOK = "audio_book"
    BOOK = "book"
    MOVIE = "movie"


class ImageLocationKind(str, enum.Enum):
    """Where an image lives: a remote URL or a derived storage key."""
    REMOTE_URL = "remote_url"
    CONTENT_ADDRESSED = "content_addressed"


class ImageRole(str, enum.Enum):
    POSTER = "poster"
