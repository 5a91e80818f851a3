"""``podgate routes`` — list registered routes.

Prints every route in match order with method, versioned path (plus
required query parameters), namespace, and handler.
"""

import argparse
import sys

from podgate.cli._resolve import resolve_app
from podgate.config import APIConfig
from podgate.errors import ConfigurationError


def run_routes(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, compile its table, and print it."""
    config = APIConfig(api_version=args.api_version) if args.api_version else None
    try:
        app = resolve_app(args.app, config)
        app._ensure_frozen()
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = app.router.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str, str]] = []
    for route in routes:
        methods_str = ", ".join(sorted(route.methods)) if route.methods else "*"
        path = route.path + "".join(f"?{q}=" for q in sorted(route.queries))
        handler_name = getattr(route.handler, "__name__", str(route.handler))
        if route.name:
            handler_name = f"{handler_name} ({route.name})"
        rows.append((methods_str, path, route.namespace.value, handler_name))

    max_methods = max(6, *(len(r[0]) for r in rows))
    max_path = max(4, *(len(r[1]) for r in rows))
    max_ns = max(9, *(len(r[2]) for r in rows))

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{:<{max_ns}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "NAMESPACE", "HANDLER"))
    print("-" * min(max_methods + max_path + max_ns + 6 + max(len(r[3]) for r in rows), 100))
    for row in rows:
        print(fmt.format(*row))
