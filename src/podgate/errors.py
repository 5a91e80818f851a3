"""Podgate exception hierarchy.

Shared across Router, Multiplexer, server pipeline, and the image
handlers so every module raises and catches the same types.

Two families reach the client and must stay distinguishable:

- ``RoutingError`` — the request matched no registered route.
- ``HandlerError`` — a route matched and the handler rejected the request.
"""

from dataclasses import dataclass


class PodgateError(Exception):
    """Base for all podgate-specific errors."""


class ConfigurationError(PodgateError):
    """Raised when server setup is invalid.

    Typically raised during route registration at startup.
    """


class RouteConflict(ConfigurationError):  # noqa: N818
    """Two registrations cannot be told apart, or one shadows the other."""


@dataclass(frozen=True, slots=True)
class HTTPError(PodgateError):
    """An error that maps directly to an HTTP status code.

    The ASGI handler catches these and renders the JSON error body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    cause = "error"

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


# -- Routing-level failures --


class RoutingError(HTTPError):
    """No route accepted the request. Never reaches handler code."""


class NotFound(RoutingError):  # noqa: N818 (conventional name in web frameworks)
    """404 — no route matched the path, method, and query string."""

    cause = "no matching route"

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(RoutingError):  # noqa: N818 (conventional name in web frameworks)
    """405 — the path exists but no route there accepts this method.

    Includes an ``Allow`` header listing the valid methods.
    """

    cause = "method not allowed"

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


# -- Handler-reported failures --


class HandlerError(HTTPError):
    """A classified failure reported by a business handler.

    Passed through to the client unchanged: status and detail are
    whatever the handler raised.
    """

    cause = "handler error"
    default_status = 500

    def __init__(self, detail: str = "", status: int | None = None) -> None:
        super().__init__(status=status or self.default_status, detail=detail)


class BadParameter(HandlerError):  # noqa: N818
    """400 — the request is well formed but a parameter is missing or invalid."""

    cause = "bad parameter"
    default_status = 400


class NoSuchImage(HandlerError):  # noqa: N818
    """404 — the named image does not exist in the store."""

    cause = "no such image"
    default_status = 404


class NoSuchContainer(HandlerError):  # noqa: N818
    """404 — the named container does not exist."""

    cause = "no such container"
    default_status = 404


class Conflict(HandlerError):  # noqa: N818
    """409 — the operation conflicts with the current store state."""

    cause = "conflict"
    default_status = 409


class InternalError(HandlerError):  # noqa: N818
    """500 — the handler failed for reasons the client cannot fix."""

    cause = "internal error"
    default_status = 500
