"""Shared schema base classes for canonical records."""

from pydantic import BaseModel


class RecordModel(BaseModel):
    """Immutable base model for normalized records."""

    model_config = {"frozen": True, "extra": "forbid"}


class UpstreamModel(BaseModel):
    """Lenient base model for provider-native payloads.

    Unknown upstream fields are ignored; only the declared ones are validated.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}
