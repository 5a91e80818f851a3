"""Content negotiation — maps handler results to response objects.

Handlers return either a response object or a ``(status, body)`` tuple.
The status is never altered; the body type picks the encoding:

    None                  -> empty body
    bytes                 -> application/octet-stream
    str                   -> text/plain
    iterator of chunks    -> StreamingResponse
    anything else         -> JSON
"""

from collections.abc import AsyncIterator, Iterator
from typing import Any

from podgate.http.response import AnyResponse, Response, StreamingResponse


def negotiate(result: Any) -> AnyResponse:
    """Convert a handler's return value to a Response or StreamingResponse."""
    if isinstance(result, Response | StreamingResponse):
        return result

    if not (isinstance(result, tuple) and len(result) == 2 and isinstance(result[0], int)):
        msg = (
            f"Handler returned {type(result).__name__}; expected a Response, "
            "a StreamingResponse, or a (status, body) tuple"
        )
        raise TypeError(msg)

    status, body = result
    match body:
        case None:
            return Response(status=status)
        case bytes():
            return Response(body=body, status=status, content_type="application/octet-stream")
        case str():
            return Response(body=body, status=status, content_type="text/plain; charset=utf-8")
        case Iterator() | AsyncIterator():
            return StreamingResponse(chunks=body, status=status)
        case _:
            return Response.json(body, status=status)
