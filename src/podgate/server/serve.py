"""Serve a podgate APIServer with the pounce ASGI server.

Pounce's ``run()`` takes an import string, but the CLI already holds a
live ``APIServer``; ``pounce.Server`` accepts the ASGI callable directly.
Requires the ``server`` extra (``pip install podgate[server]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from podgate.errors import ConfigurationError

if TYPE_CHECKING:
    from podgate.app import APIServer


def run_server(
    app: APIServer,
    host: str,
    port: int,
    *,
    workers: int = 0,
    log_level: str = "info",
) -> None:
    """Freeze *app* and serve it until interrupted.

    The route table is compiled before the first worker starts, so every
    worker shares the same read-only table.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "Serving requires the 'server' extra: pip install podgate[server]"
        raise ConfigurationError(msg) from exc

    app._ensure_frozen()

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        log_level=log_level,
    )
    server = Server(config, app)
    server.run()
