"""Podgate CLI — route table listing and the API server.

Entry point registered as ``podgate`` in ``pyproject.toml``::

    [project.scripts]
    podgate = "podgate.cli:main"
"""

import argparse
import sys

DEFAULT_APP = "podgate.app:create_app"


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``podgate`` command."""
    parser = argparse.ArgumentParser(
        prog="podgate",
        description="Podgate — versioned routing for the container image API.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- podgate routes ---------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument(
        "app",
        nargs="?",
        default=DEFAULT_APP,
        help=f"Import string (default: {DEFAULT_APP})",
    )
    routes_parser.add_argument(
        "--api-version",
        default=None,
        help="Pin the version prefix (e.g. 1.40) when APP is a factory",
    )

    # -- podgate run ------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the API server")
    run_parser.add_argument(
        "app",
        nargs="?",
        default=DEFAULT_APP,
        help=f"Import string (default: {DEFAULT_APP})",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--api-version",
        default=None,
        help="Pin the version prefix (e.g. 1.40) when APP is a factory",
    )
    run_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker count (0=auto-detect)",
    )
    run_parser.add_argument("--log-level", default=None, help="Logging level (default: info)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from podgate.cli._routes import run_routes

        run_routes(args)
    elif args.command == "run":
        from podgate.cli._run import run_server

        run_server(args)
