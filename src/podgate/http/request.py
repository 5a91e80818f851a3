"""The request object handlers receive.

Built from the ASGI scope before routing, then rebound with the path
parameters of the matched route. The body is read lazily and at most once.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field, replace
from typing import Any

from podgate._internal.asgi import Receive, Scope
from podgate.http.multidict import Headers, QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """One HTTP request. Frozen; only the body cache changes after creation."""

    method: str
    path: str
    # Path as received, still percent-encoded; routing splits this one
    raw_path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    http_version: str
    client: tuple[str, int] | None

    # ASGI receive callable; the body is pulled from it on demand
    _receive: Receive

    # Shared by copies made with with_path_params
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """Value of the Content-Type header, if sent."""
        return self.headers.get("content-type")

    @property
    def api_version(self) -> str | None:
        """Version segment the client addressed, when bound by the route pattern."""
        return self.path_params.get("version")

    @property
    def url(self) -> str:
        """Request path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    def param(self, name: str) -> str:
        """Return a bound path parameter. Raises ``KeyError`` if absent."""
        return self.path_params[name]

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Return a copy bound to *path_params*, sharing the body cache."""
        return replace(self, path_params=path_params)

    # -- Async body access --

    async def body(self) -> bytes:
        """The whole body. Later calls return the cached bytes."""
        cached = self._cache.get("body")
        if cached is None:
            cached = self._cache["body"] = b"".join([part async for part in self.stream()])
        return cached

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks (tarballs for load and import)."""
        more = True
        while more:
            message = await self._receive()
            more = message.get("more_body", False)
            chunk = message.get("body", b"")
            if chunk:
                yield chunk

    async def json(self) -> Any:
        """Parse the body as JSON. An empty body parses as ``None``."""
        raw = await self.body()
        if not raw.strip():
            return None
        return json_module.loads(raw)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Build an unrouted Request (no path parameters yet)."""
        peer = scope.get("client")
        raw = scope.get("raw_path")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            raw_path=raw.decode("latin-1").partition("?")[0] if raw else scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            http_version=scope.get("http_version", "1.1"),
            client=tuple(peer) if peer else None,
            _receive=receive,
        )
