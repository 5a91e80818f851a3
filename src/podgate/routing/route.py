"""Route, RouteSpec, and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Container
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Namespace(Enum):
    """An endpoint surface. Each namespace owns a path prefix."""

    COMPAT = "compat"
    NATIVE = "native"

    @property
    def prefix(self) -> str:
        """Path prefix inserted between the version segment and the route path."""
        return "/libpod" if self is Namespace.NATIVE else ""


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:    ``/images``             (is_param=False)
    Param:     ``/{name}``             (is_param=True, param_name="name")
    Prefixed:  ``/v{version:version}`` (is_param=True, literal_prefix="v",
                                        param_type="version")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"
    literal_prefix: str = ""


@dataclass(frozen=True, slots=True)
class RouteSpec:
    """One namespace's view of a logical operation, before versioning.

    ``methods=None`` accepts any HTTP method. ``queries`` names the query
    parameters that must be present for the route to match.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str] | None = None
    queries: frozenset[str] = frozenset()

    @classmethod
    def of(
        cls,
        path: str,
        handler: Callable[..., Any],
        *methods: str,
        queries: tuple[str, ...] = (),
    ) -> "RouteSpec":
        """Shorthand: ``RouteSpec.of("/images/json", list_images, "GET")``."""
        return cls(
            path=path,
            handler=handler,
            methods=frozenset(m.upper() for m in methods) or None,
            queries=frozenset(queries),
        )


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created by the Multiplexer during setup, compiled into the router.
    ``path`` is the full versioned pattern; ``logical_path`` is the
    namespace-relative path the operation was declared with.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str] | None = None
    queries: frozenset[str] = frozenset()
    namespace: Namespace = Namespace.COMPAT
    name: str | None = None
    logical_path: str = ""

    def accepts_method(self, method: str) -> bool:
        return self.methods is None or method in self.methods

    def accepts_query(self, query: Container[str]) -> bool:
        """True when every required query parameter is present."""
        return all(key in query for key in self.queries)

    def shadows(self, other: "Route") -> bool:
        """True when this route, registered first, makes *other* unreachable.

        The caller has established that *other*'s paths are all matched by this route.
        """
        if self.methods is not None:
            if other.methods is None or not other.methods <= self.methods:
                return False
        return self.queries <= other.queries


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
