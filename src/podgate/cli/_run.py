"""``podgate run`` — serve the API with pounce.

CLI flags that shape the route table (``--api-version``) are baked into
the configuration handed to the app factory; bind flags override the
resolved server's configuration.
"""

import argparse
import sys

from podgate.cli._resolve import resolve_app
from podgate.config import APIConfig
from podgate.errors import ConfigurationError


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it until interrupted."""
    config = None
    if args.api_version or args.log_level:
        config = APIConfig(
            api_version=args.api_version,
            log_level=args.log_level or "info",
        )

    try:
        app = resolve_app(args.app, config)
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from podgate.log import configure_logging
    from podgate.server.serve import run_server as serve

    configure_logging(app.config.log_level)
    try:
        serve(
            app,
            args.host or app.config.host,
            args.port or app.config.port,
            workers=args.workers if args.workers is not None else app.config.workers,
            log_level=app.config.log_level,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
