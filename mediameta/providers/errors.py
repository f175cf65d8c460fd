"""Error taxonomy shared by provider adapters."""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for recoverable provider failures."""


class ConfigurationError(ProviderError):
    """Raised when an adapter is constructed with unsupported settings."""


class UpstreamError(ProviderError):
    """Raised when an upstream catalog call cannot produce a result."""


class UpstreamTransportError(UpstreamError):
    """Network failure or non-success HTTP status."""


class UpstreamShapeError(UpstreamError):
    """Response body does not match the expected upstream shape."""


class NotFoundError(UpstreamError):
    """Upstream reports that the requested identifier does not exist."""


class NormalizationAssertionFailure(AssertionError):
    """A provider broke an invariant the adapter relies on.

    Signals a defect in the adapter or the upstream contract and is not a
    ProviderError.
    """
