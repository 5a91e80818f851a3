"""Error rendering for podgate requests.

Every failure is answered with the Docker/libpod error body::

    {"cause": "...", "message": "...", "response": 404}

An ``X-Podgate-Error`` header tells routing failures (``routing``) apart
from failures reported by, or escaping from, a handler (``handler``).
"""

import logging

from podgate.errors import HTTPError, InternalError, RoutingError
from podgate.http.request import Request
from podgate.http.response import Response

logger = logging.getLogger("podgate.server")

ERROR_SOURCE_HEADER = "X-Podgate-Error"


def error_body(exc: HTTPError) -> dict[str, object]:
    """The JSON error document for *exc*."""
    return {
        "cause": exc.cause,
        "message": exc.detail or exc.cause,
        "response": exc.status,
    }


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Map a routing or handler HTTPError to a JSON Response.

    Status, detail, and headers pass through as raised.
    """
    source = "routing" if isinstance(exc, RoutingError) else "handler"
    logger.debug("%d %s %s (%s): %s", exc.status, request.method, request.path, source, exc.detail)

    response = Response.json(error_body(exc), status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response.with_header(ERROR_SOURCE_HEADER, source)


def handle_internal_error(exc: Exception, request: Request, *, debug: bool = False) -> Response:
    """Handle an unexpected exception from a handler as a 500 error."""
    logger.exception("500 %s %s", request.method, request.path)
    detail = f"{type(exc).__name__}: {exc}" if debug else "Internal Server Error"
    return handle_http_error(InternalError(detail), request)
