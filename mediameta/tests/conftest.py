"""Shared pytest fixtures for provider tests and settings isolation."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator

import pytest

from mediameta.core.config import settings
from mediameta.tests.utils import FakeUpstream


@pytest.fixture()
def upstream() -> Iterator[FakeUpstream]:
    fake = FakeUpstream()
    yield fake
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(fake.aclose())
    finally:
        loop.close()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "audible_locale", "us")
    monkeypatch.setattr(settings, "google_books_locale", "us")
    monkeypatch.setattr(settings, "google_books_api_key", None)
    monkeypatch.setattr(settings, "tmdb_locale", "us")
    monkeypatch.setattr(settings, "tmdb_api_key", None)
    monkeypatch.setattr(settings, "tmdb_api_auth_header", "test-token")
