"""ASGI response sending — translates podgate responses to ASGI messages.

Handles both single-body responses and chunked streaming responses.
"""

import logging
from collections.abc import AsyncIterator, Iterator

from podgate._internal.asgi import Send
from podgate.http.response import Response, StreamingResponse

logger = logging.getLogger("podgate.server")


def _body_allowed(status: int) -> bool:
    """False for 1xx, 204 and 304, which carry no message body."""
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(content_type: str, headers: tuple[tuple[str, str], ...]) -> list[tuple[bytes, bytes]]:
    raw = [(b"content-type", content_type.encode("latin-1"))]
    raw.extend((name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers)
    return raw


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls."""
    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers = _raw_headers(response.content_type, response.headers)
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})


async def _iter_chunks(chunks: Iterator[str | bytes] | AsyncIterator[str | bytes]) -> AsyncIterator[bytes]:
    """Normalize sync or async chunk sources to non-empty ``bytes``."""
    if isinstance(chunks, AsyncIterator):
        async for chunk in chunks:
            if chunk:
                yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk
        return
    for chunk in chunks:
        if chunk:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


async def send_streaming_response(response: StreamingResponse, send: Send) -> None:
    """Send headers at once, then every chunk with ``more_body=True``.

    The status line is already on the wire when the iterator runs, so a
    mid-stream failure is logged and the stream is closed; the client sees
    a truncated body.
    """
    raw_headers = _raw_headers(response.content_type, response.headers)
    raw_headers.append((b"transfer-encoding", b"chunked"))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    try:
        async for chunk in _iter_chunks(response.chunks):
            await send({"type": "http.response.body", "body": chunk, "more_body": True})
    except Exception:
        logger.exception("stream aborted after response start")

    await send({"type": "http.response.body", "body": b"", "more_body": False})
