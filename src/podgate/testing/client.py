"""Async test client for podgate servers.

Drives the server through its ASGI interface and hands back the same
``Response`` type the handlers produce. Streaming responses are
collected into a single body.
"""

import json as json_module
from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote, urlencode

from podgate.app import APIServer, _run_hooks
from podgate.http.response import Response


class _Recorder:
    """ASGI ``send`` that keeps the status, headers, and body parts."""

    __slots__ = ("chunks", "headers", "status")

    def __init__(self) -> None:
        self.status = 500
        self.headers: list[tuple[bytes, bytes]] = []
        self.chunks: list[bytes] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        match message["type"]:
            case "http.response.start":
                self.status = message["status"]
                self.headers = list(message.get("headers", ()))
            case "http.response.body":
                self.chunks.append(message.get("body", b""))

    def to_response(self) -> Response:
        content_type = ""
        headers: list[tuple[str, str]] = []
        for raw_name, raw_value in self.headers:
            name, value = raw_name.decode("latin-1"), raw_value.decode("latin-1")
            if name == "content-type":
                content_type = value
            elif name != "content-length":
                headers.append((name, value))
        return Response(
            body=b"".join(self.chunks),
            status=self.status,
            content_type=content_type,
            headers=tuple(headers),
        )


def _body_receiver(body: bytes):
    """ASGI ``receive`` yielding *body* once, then a disconnect."""
    pending = [{"type": "http.request", "body": body, "more_body": False}]

    async def receive() -> dict[str, Any]:
        return pending.pop() if pending else {"type": "http.disconnect"}

    return receive


class TestClient:
    __test__ = False  # not a test class, despite the name
    """Async test client for podgate servers.

    No sockets involved: requests go straight into ``APIServer.__call__``.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/v1.40/images/json")
            assert response.json_body() == []
    """

    __slots__ = ("app",)

    def __init__(self, app: APIServer) -> None:
        self.app = app

    async def __aenter__(self) -> "TestClient":
        self.app._ensure_frozen()
        await _run_hooks(self.app._startup_hooks)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await _run_hooks(self.app._shutdown_hooks)

    async def get(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return await self.request("GET", path, query=query, headers=headers)

    async def post(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
        json: Any = None,
    ) -> Response:
        """POST *body*, or *json* serialized with a JSON content type."""
        if json is not None:
            body = json_module.dumps(json).encode("utf-8")
            headers = {"content-type": "application/json", **(headers or {})}
        return await self.request("POST", path, query=query, headers=headers, body=body)

    async def delete(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return await self.request("DELETE", path, query=query, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> Response:
        """Send one request through the ASGI app.

        *path* is sent percent-encoded as ``raw_path`` and decoded as
        ``path``, as an HTTP server would. ``query`` is appended to any
        query string already in *path*; list values repeat the key.
        """
        path_part, _, query_string = path.partition("?")
        if query:
            encoded = urlencode(query, doseq=True)
            query_string = f"{query_string}&{encoded}" if query_string else encoded

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "scheme": "http",
            "path": unquote(path_part),
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        recorder = _Recorder()
        await self.app(scope, _body_receiver(body), recorder)
        return recorder.to_response()
