"""Compiled router with trie-based path matching and query predicates.

Routes are registered during setup and compiled into an immutable
lookup structure before the server accepts requests.

Matching order:

1. path pattern (every trie branch that matches the full path)
2. HTTP method (a route without methods accepts any)
3. query predicates (required parameter names must be present)
4. registration order among whatever is left
"""

import logging
import re
from collections.abc import Container, Iterator
from dataclasses import dataclass
from urllib.parse import unquote

from podgate.errors import ConfigurationError, MethodNotAllowed, NotFound, RouteConflict
from podgate.routing.params import CONVERTERS
from podgate.routing.route import PathSegment, Route, RouteMatch

logger = logging.getLogger("podgate.routing")

_PARAM_RE = re.compile(r"^(?P<prefix>[^{}]*)\{(?P<inner>[^{}]+)\}$")


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/images/json"            -> [PathSegment("images"), PathSegment("json")]
        "/images/{name}"          -> [..., PathSegment("{name}", is_param=True, ...)]
        "/v{version:version}/..." -> [PathSegment("v{version:version}", literal_prefix="v",
                                                  param_type="version"), ...]
    """
    if "<" in path and ">" in path:
        msg = (
            f"Route path {path!r} uses <param> placeholders. "
            "Use {param} instead, e.g. /images/{name}."
        )
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        m = _PARAM_RE.match(part)
        if m is None:
            if "{" in part or "}" in part:
                msg = f"Malformed path segment {part!r} in {path!r}"
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=part))
            continue

        inner = m.group("inner")
        if ":" in inner:
            param_name, param_type = inner.split(":", 1)
        else:
            param_name, param_type = inner, "str"
        if param_type not in CONVERTERS:
            msg = f"Unknown converter {param_type!r} in {path!r}"
            raise ConfigurationError(msg)
        segments.append(
            PathSegment(
                value=part,
                is_param=True,
                param_name=param_name,
                param_type=param_type,
                literal_prefix=m.group("prefix"),
            )
        )
    return segments


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("children", "param_child", "routes")

    def __init__(self) -> None:
        # Static segment children: "images" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Routes ending at this node, in registration order
        self.routes: list[tuple[int, Route]] = []


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    segment: PathSegment
    regex: re.Pattern[str]
    node: _TrieNode


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(Route("/images/create", pull, frozenset({"POST"}),
                         queries=frozenset({"fromImage"})))
        router.add(Route("/images/{name}/json", inspect, frozenset({"GET"})))
        router.compile()
        match = router.match("POST", "/images/create", {"fromImage": "alpine"})
    """

    __slots__ = ("_compiled", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._routes: list[Route] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route to the router. Must be called before compile().

        Raises ``RouteConflict`` if an earlier route would always win over
        *route*. That includes a parameter route registered ahead of a static
        route the parameter also captures, e.g. ``/images/{name}`` then
        ``/images/json`` for the same method.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        segments = parse_path(route.path)
        node = self._root
        for seg in segments:
            if seg.is_param:
                edge = node.param_child
                if edge is None:
                    pattern = CONVERTERS[seg.param_type]
                    edge = _ParamEdge(
                        segment=seg,
                        regex=re.compile(f"^{re.escape(seg.literal_prefix)}({pattern})$"),
                        node=_TrieNode(),
                    )
                    node.param_child = edge
                elif edge.segment.value != seg.value:
                    msg = (
                        f"Route {route.path!r} declares {seg.value!r} where an earlier "
                        f"route declared {edge.segment.value!r}"
                    )
                    raise ConfigurationError(msg)
                node = edge.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        for covering in _covering_nodes(self._root, segments, 0):
            for _, existing in covering.routes:
                if not existing.shadows(route):
                    continue
                same_key = (
                    existing.path == route.path
                    and existing.methods == route.methods
                    and existing.queries == route.queries
                )
                kind = "duplicates" if same_key else "is shadowed by"
                msg = f"{_describe(route)} {kind} {_describe(existing)}"
                raise RouteConflict(msg)

        node.routes.append((len(self._routes), route))
        self._routes.append(route)
        logger.debug("registered %s", _describe(route))

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes in registration order."""
        return list(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True
        logger.info("route table compiled with %d routes", len(self._routes))

    def match(self, method: str, path: str, query: Container[str] = ()) -> RouteMatch:
        """Match a request against compiled routes.

        *path* is the raw (still percent-encoded) request path. Segments are
        split before decoding, so ``quay.io%2Fapp:1`` binds as one parameter
        value, ``quay.io/app:1``.

        Returns a ``RouteMatch`` on success.
        Raises ``NotFound`` if no route matches the path, or none of the
        routes accepting the method has its query predicates satisfied.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        candidates: list[tuple[int, Route, dict[str, str]]] = []
        self._collect(self._root, parts, 0, {}, candidates)

        if not candidates:
            raise NotFound(f"No route matches {method} {path!r}")

        candidates.sort(key=lambda c: c[0])

        by_method = [(r, p) for _, r, p in candidates if r.accepts_method(method)]
        if not by_method:
            allowed: set[str] = set()
            for _, r, _ in candidates:
                allowed.update(r.methods or ())
            raise MethodNotAllowed(frozenset(allowed))

        for route, params in by_method:
            if route.accepts_query(query):
                return RouteMatch(route=route, path_params=params)

        raise NotFound(f"No route matches {method} {path!r} with the given query parameters")

    def _collect(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
        out: list[tuple[int, Route, dict[str, str]]],
    ) -> None:
        """Collect every route whose pattern matches the full path."""
        if index == len(parts):
            out.extend((seq, route, params) for seq, route in node.routes)
            return

        part = parts[index]

        child = node.children.get(unquote(part))
        if child is not None:
            self._collect(child, parts, index + 1, params, out)

        edge = node.param_child
        if edge is not None:
            m = edge.regex.match(part)
            if m is not None:
                name = edge.segment.param_name or ""
                self._collect(edge.node, parts, index + 1, {**params, name: unquote(m.group(1))}, out)


def _describe(route: Route) -> str:
    methods = ",".join(sorted(route.methods)) if route.methods else "*"
    query = "".join(f"?{q}" for q in sorted(route.queries))
    return f"[{route.namespace.value}] {methods} {route.path}{query}"


def _covering_nodes(node: _TrieNode, segments: list[PathSegment], index: int) -> Iterator[_TrieNode]:
    """Nodes whose routes match every concrete path *segments* can match.

    A static segment is covered by the same static child and by a
    parameter edge whose pattern accepts it. A parameter segment is only
    covered by the parameter edge.
    """
    if index == len(segments):
        yield node
        return
    seg = segments[index]
    if not seg.is_param:
        child = node.children.get(seg.value)
        if child is not None:
            yield from _covering_nodes(child, segments, index + 1)
    edge = node.param_child
    if edge is not None and (seg.is_param or edge.regex.match(seg.value)):
        yield from _covering_nodes(edge.node, segments, index + 1)
