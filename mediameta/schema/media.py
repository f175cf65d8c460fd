"""Canonical media record schemas produced by every provider adapter."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Union

from pydantic import Field, model_validator

from mediameta.models.media import ImageLocationKind, ImageRole, MediaKind, MediaSource
from mediameta.schema.base import RecordModel


class MediaCreator(RecordModel):
    """A contributor credited on a record under a free-text role."""
    name: str
    role: str
    image_urls: list[str] = Field(default_factory=list)


class MediaImage(RecordModel):
    """Image reference; either a remote URL or a content-addressed key."""
    location_kind: ImageLocationKind
    value: str
    role: ImageRole = ImageRole.POSTER


class AudioBookSpecifics(RecordModel):
    kind: Literal["audio_book"] = "audio_book"
    runtime: int | None = None


class BookSpecifics(RecordModel):
    kind: Literal["book"] = "book"
    pages: int | None = None
    publisher: str | None = None


class MovieSpecifics(RecordModel):
    kind: Literal["movie"] = "movie"
    runtime: int | None = None


MediaSpecifics = Annotated[
    Union[AudioBookSpecifics, BookSpecifics, MovieSpecifics],
    Field(discriminator="kind"),
]


class MediaRecord(RecordModel):
    """Provider-agnostic representation of one catalog entry.

    Invariants:
    - ``identifier`` is never empty.
    - ``specifics.kind`` always equals ``media_kind``.
    """
    identifier: str = Field(min_length=1)
    source: MediaSource
    media_kind: MediaKind
    title: str
    description: str | None = None
    creators: list[MediaCreator] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    publish_year: int | None = None
    publish_date: date | None = None
    images: list[MediaImage] = Field(default_factory=list)
    specifics: MediaSpecifics

    @model_validator(mode="after")
    def _specifics_match_kind(self) -> "MediaRecord":
        if self.specifics.kind != self.media_kind.value:
            msg = f"specifics for {self.specifics.kind} attached to a {self.media_kind.value} record"
            raise ValueError(msg)
        return self
