"""Routing — versioned, query-aware route table with first-match-wins lookup.

Routes are registered during setup through the Multiplexer and compiled
into an immutable lookup structure before the server accepts requests.
"""

from podgate.routing.mux import Multiplexer
from podgate.routing.route import Namespace, Route, RouteMatch, RouteSpec
from podgate.routing.router import Router
from podgate.routing.versioning import PathVersioner

__all__ = [
    "Multiplexer",
    "Namespace",
    "PathVersioner",
    "Route",
    "RouteMatch",
    "RouteSpec",
    "Router",
]
