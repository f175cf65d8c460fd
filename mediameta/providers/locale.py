"""Static region tables and their lookup."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from mediameta.providers.errors import ConfigurationError


def locale_table(entries: dict[str, str]) -> Mapping[str, str]:
    """Freeze a provider's region table."""
    return MappingProxyType(dict(entries))


def resolve_locale(table: Mapping[str, str], code: str, *, provider: str) -> str:
    """Return the provider-specific value for a region code or fail fast."""
    try:
        return table[code]
    except KeyError:
        supported = ", ".join(sorted(table))
        raise ConfigurationError(
            f"Unsupported {provider} locale '{code}'; expected one of: {supported}"
        ) from None
