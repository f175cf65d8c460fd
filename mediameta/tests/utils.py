"""Shared helpers for provider tests."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Any

import httpx


def json_response(payload: Any = None, *, status: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status, json=payload if payload is not None else {})


class FakeUpstream:
    """Route-by-path fake for an upstream HTTP API.

    Each path holds a queue of responses; the last queued response keeps
    being served once the others are consumed. Unknown paths return 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._clients: list[httpx.AsyncClient] = []
        self._routes: defaultdict[str, deque[httpx.Response | Exception]] = defaultdict(deque)

    def add(self, path: str, *responses: httpx.Response | Exception) -> None:
        self._routes[path].extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get(request.url.path)
        if not queue:
            return httpx.Response(404, json={"error": "not found"})
        outcome = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def client(self) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        self._clients.append(client)
        return client

    async def aclose(self) -> None:
        for client in self._clients:
            if not client.is_closed:
                await client.aclose()

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]
