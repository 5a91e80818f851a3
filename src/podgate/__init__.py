"""Podgate — versioned HTTP routing for container-image operations.

Serves the Docker-compatible and the native (``/libpod``) image APIs
from one route table.

Basic usage::

    from podgate import APIConfig, create_app

    app = create_app(APIConfig(api_version="1.40"))
    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "APIConfig",
    "APIServer",
    "ConfigurationError",
    "HTTPError",
    "HandlerContext",
    "HandlerError",
    "MethodNotAllowed",
    "Namespace",
    "NotFound",
    "PodgateError",
    "Request",
    "Response",
    "RouteConflict",
    "RoutingError",
    "StreamingResponse",
    "create_app",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import podgate`` fast while providing a clean top-level API.
    """
    if name in ("APIServer", "create_app"):
        from podgate import app as _app

        return getattr(_app, name)

    if name == "APIConfig":
        from podgate.config import APIConfig

        return APIConfig

    if name == "HandlerContext":
        from podgate.context import HandlerContext

        return HandlerContext

    if name == "Request":
        from podgate.http.request import Request

        return Request

    if name in ("Response", "StreamingResponse"):
        from podgate.http import response as _resp

        return getattr(_resp, name)

    if name == "Namespace":
        from podgate.routing.route import Namespace

        return Namespace

    if name in (
        "ConfigurationError",
        "HTTPError",
        "HandlerError",
        "MethodNotAllowed",
        "NotFound",
        "PodgateError",
        "RouteConflict",
        "RoutingError",
    ):
        from podgate import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
