"""Response types handlers may return directly.

A handler can also return a ``(status, body)`` tuple; the server
negotiates it into one of these.
"""

import json as json_module
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    """A complete, immutable HTTP response. JSON unless told otherwise."""

    body: str | bytes = b""
    status: int = 200
    content_type: str = JSON_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()

    @classmethod
    def json(cls, data: Any, status: int = 200) -> "Response":
        """Serialize *data* as a JSON response body."""
        return cls(body=json_module.dumps(data), status=status)

    def with_header(self, name: str, value: str) -> "Response":
        """Copy of this response with one more header appended."""
        return replace(self, headers=(*self.headers, (name, value)))

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or None."""
        wanted = name.lower()
        return next((value for key, value in self.headers if key.lower() == wanted), None)

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body if isinstance(self.body, str) else self.body.decode("utf-8")

    def json_body(self) -> Any:
        """Decode the body as JSON."""
        return json_module.loads(self.body_bytes)


@dataclass(frozen=True, slots=True)
class StreamingResponse:
    """A response whose body is produced chunk by chunk.

    Used for image export and pull/build progress: headers go out
    immediately, then each chunk as an ASGI body message with
    ``more_body=True``.
    """

    chunks: Iterator[str | bytes] | AsyncIterator[str | bytes]
    status: int = 200
    content_type: str = "application/octet-stream"
    headers: tuple[tuple[str, str], ...] = ()


AnyResponse = Response | StreamingResponse
