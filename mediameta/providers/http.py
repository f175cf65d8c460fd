from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from mediameta.core.config import settings
from mediameta.providers.errors import NotFoundError, UpstreamShapeError, UpstreamTransportError
from mediameta.utils.redaction import redact_secrets

ShapeT = TypeVar("ShapeT", bound=BaseModel)


def default_headers() -> dict[str, str]:
    """Static identification headers sent with every upstream request."""
    return {"User-Agent": settings.user_agent, "Accept": "application/json"}


def build_client(timeout: float | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout or settings.http_timeout_seconds)


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET a JSON document, mapping failures onto the upstream error taxonomy."""
    request_headers = {**default_headers(), **(headers or {})}
    try:
        response = await client.get(url, params=params, headers=request_headers)
    except httpx.HTTPError as exc:
        raise UpstreamTransportError(redact_secrets(f"Request to {url} failed: {exc}")) from exc
    if response.status_code == 404:
        raise NotFoundError(redact_secrets(f"Upstream resource not found: {response.url}"))
    if not response.is_success:
        raise UpstreamTransportError(
            redact_secrets(f"Upstream error {response.status_code} for {response.url}")
        )
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamShapeError(redact_secrets(f"Invalid JSON from {response.url}")) from exc


def parse_shape(model: type[ShapeT], payload: Any) -> ShapeT:
    """Validate an upstream payload against its expected pydantic shape."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamShapeError(f"Unexpected {model.__name__} payload: {exc}") from exc
