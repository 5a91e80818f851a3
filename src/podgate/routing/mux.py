"""Compatibility multiplexer — one operation, up to two endpoint surfaces.

Each logical operation is declared once with an optional ``RouteSpec``
per namespace. The multiplexer versions each RouteSpec, tags it with its
namespace, and adds it to the shared router. Operations exposed on both
namespaces must agree on path, methods, and query predicates; only the
handler may differ.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from podgate.errors import ConfigurationError, RouteConflict
from podgate.routing.route import Namespace, Route, RouteSpec
from podgate.routing.router import Router
from podgate.routing.versioning import PathVersioner

logger = logging.getLogger("podgate.routing")


class Multiplexer:
    """Registers logical operations into the compat and native tables.

    Only usable during the single-threaded setup phase; once the router
    is compiled, further registration raises ``RuntimeError``.
    """

    __slots__ = ("_operations", "_tables", "router", "versioner")

    def __init__(self, router: Router, versioner: PathVersioner | None = None) -> None:
        self.router = router
        self.versioner = versioner or PathVersioner()
        self._operations: dict[str, dict[Namespace, Route]] = {}
        self._tables: dict[Namespace, list[Route]] = {ns: [] for ns in Namespace}

    def register_operation(
        self,
        name: str,
        compat: RouteSpec | None = None,
        native: RouteSpec | None = None,
    ) -> dict[Namespace, Route]:
        """Register *name* on every namespace it is exposed on.

        Returns the created routes keyed by namespace.
        """
        if compat is None and native is None:
            msg = f"Operation {name!r} is not exposed on any namespace"
            raise ConfigurationError(msg)
        if name in self._operations:
            msg = f"Operation {name!r} is already registered"
            raise RouteConflict(msg)
        if compat is not None and native is not None:
            _check_same_shape(name, compat, native)

        routes: dict[Namespace, Route] = {}
        for namespace, spec in ((Namespace.COMPAT, compat), (Namespace.NATIVE, native)):
            if spec is None:
                continue
            route = Route(
                path=self.versioner.versioned_path(namespace, spec.path),
                handler=spec.handler,
                methods=spec.methods,
                queries=spec.queries,
                namespace=namespace,
                name=name,
                logical_path=spec.path,
            )
            self.router.add(route)
            self._tables[namespace].append(route)
            routes[namespace] = route

        self._operations[name] = routes
        return routes

    def table(self, namespace: Namespace) -> list[Route]:
        """Routes registered on *namespace*, in registration order."""
        return list(self._tables[namespace])

    @property
    def operations(self) -> Mapping[str, Mapping[Namespace, Route]]:
        """Read-only view of registered operations."""
        return MappingProxyType(self._operations)


def _check_same_shape(name: str, compat: RouteSpec, native: RouteSpec) -> None:
    """Both surfaces of one operation must be the same endpoint shape."""
    for attr in ("path", "methods", "queries"):
        left, right = getattr(compat, attr), getattr(native, attr)
        if left != right:
            msg = f"Operation {name!r} differs between namespaces in {attr}: {left!r} != {right!r}"
            raise ConfigurationError(msg)
