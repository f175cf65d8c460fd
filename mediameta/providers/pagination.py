"""Pagination accounting and result envelope assembly.

Pages are 1-based at the provider contract boundary; adapters translate to
the upstream's own scheme with ``zero_based_page`` or ``page_offset``.
"""

from __future__ import annotations

from collections.abc import Iterable

from mediameta.schema.search import SearchResultEnvelope, SearchResultItem

PAGE_SIZE = 20


def validate_page(page: int | None) -> int:
    """Default a missing page to 1 and reject pages below 1."""
    if page is None:
        return 1
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    return page


def zero_based_page(page: int) -> int:
    return page - 1


def page_offset(page: int, page_size: int = PAGE_SIZE) -> int:
    return (page - 1) * page_size


def has_next_page(total: int, page: int, page_size: int = PAGE_SIZE) -> bool:
    return total - page * page_size > 0


def next_page(total: int, page: int, page_size: int = PAGE_SIZE) -> int | None:
    return page + 1 if has_next_page(total, page, page_size) else None


def assemble_results(
    total: int,
    items: Iterable[SearchResultItem],
    page: int,
    page_size: int = PAGE_SIZE,
) -> SearchResultEnvelope:
    """Wrap normalized items and the upstream total into a result envelope."""
    return SearchResultEnvelope(
        total=total,
        items=list(items),
        next_page=next_page(total, page, page_size),
    )
