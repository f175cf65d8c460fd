"""Search result schemas returned by provider list queries."""

from __future__ import annotations

from pydantic import Field

from mediameta.models.media import MediaKind
from mediameta.schema.base import RecordModel


class SearchResultItem(RecordModel):
    """Lightweight projection of a record used in list views."""
    identifier: str = Field(min_length=1)
    media_kind: MediaKind
    title: str
    images: list[str] = Field(default_factory=list)
    publish_year: int | None = None


class SearchResultEnvelope(RecordModel):
    """One page of provider search results."""
    total: int = Field(ge=0)
    items: list[SearchResultItem] = Field(default_factory=list)
    next_page: int | None = None
