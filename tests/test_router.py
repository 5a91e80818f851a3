"""Tests for podgate.routing.router — trie matching with query predicates."""

import pytest

from podgate.errors import ConfigurationError, MethodNotAllowed, NotFound, RouteConflict
from podgate.routing.route import Namespace, Route
from podgate.routing.router import Router, parse_path


def _pull() -> str:
    return "pull"


def _import() -> str:
    return "import"


def _fallback() -> str:
    return "fallback"


def _route(
    path: str,
    handler=_pull,
    methods: frozenset[str] | None = frozenset({"GET"}),
    queries: frozenset[str] = frozenset(),
) -> Route:
    return Route(path=path, handler=handler, methods=methods, queries=queries)


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/images/json")
        assert [s.value for s in segments] == ["images", "json"]
        assert not any(s.is_param for s in segments)

    def test_param(self) -> None:
        segments = parse_path("/images/{name}/json")
        assert segments[1].is_param is True
        assert segments[1].param_name == "name"
        assert segments[1].param_type == "str"

    def test_prefixed_version_param(self) -> None:
        segments = parse_path("/v{version:version}/images/json")
        assert segments[0].is_param is True
        assert segments[0].literal_prefix == "v"
        assert segments[0].param_name == "version"
        assert segments[0].param_type == "version"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_rejects_angle_bracket_param(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            parse_path("/images/<name>")
        assert "{param}" in str(exc_info.value)

    def test_rejects_unbalanced_brace(self) -> None:
        with pytest.raises(ConfigurationError, match="Malformed"):
            parse_path("/images/{name")

    def test_rejects_unknown_converter(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown converter"):
            parse_path("/images/{name:uuid}")


class TestPathMatching:
    def test_static_match(self) -> None:
        router = Router()
        router.add(_route("/v1.40/images/json"))
        router.compile()
        match = router.match("GET", "/v1.40/images/json")
        assert match.route.handler is _pull
        assert match.path_params == {}

    def test_param_binds_positionally(self) -> None:
        router = Router()
        router.add(_route("/images/{name}/json"))
        router.compile()
        match = router.match("GET", "/images/alpine/json")
        assert match.path_params == {"name": "alpine"}

    def test_version_param_binds(self) -> None:
        router = Router()
        router.add(_route("/v{version:version}/images/json"))
        router.compile()
        match = router.match("GET", "/v1.40/images/json")
        assert match.path_params == {"version": "1.40"}

    def test_version_param_rejects_non_numeric(self) -> None:
        router = Router()
        router.add(_route("/v{version:version}/images/json"))
        router.compile()
        with pytest.raises(NotFound):
            router.match("GET", "/vlatest/images/json")

    def test_unknown_path(self) -> None:
        router = Router()
        router.add(_route("/images/json"))
        router.compile()
        with pytest.raises(NotFound):
            router.match("GET", "/containers/json")

    def test_static_and_param_branches_follow_registration_order(self) -> None:
        router = Router()
        router.add(_route("/images/{name}", handler=_fallback, queries=frozenset({"all"})))
        router.add(_route("/images/json", handler=_pull))
        router.compile()
        assert router.match("GET", "/images/json", {"all": "1"}).route.handler is _fallback
        assert router.match("GET", "/images/json").route.handler is _pull

    def test_encoded_slash_binds_one_param(self) -> None:
        router = Router()
        router.add(_route("/images/{name}/json"))
        router.compile()
        match = router.match("GET", "/images/quay.io%2Fteam%2Fapp:1/json")
        assert match.path_params == {"name": "quay.io/team/app:1"}

    def test_decoded_slash_splits_segments(self) -> None:
        router = Router()
        router.add(_route("/images/{name}/json"))
        router.compile()
        with pytest.raises(NotFound):
            router.match("GET", "/images/quay.io/app:1/json")

    def test_encoded_static_segment(self) -> None:
        router = Router()
        router.add(_route("/images/json"))
        router.compile()
        assert router.match("GET", "/images/%6Ason").route.handler is _pull

    def test_static_sibling_of_param_with_other_method(self) -> None:
        router = Router()
        router.add(_route("/images/json", handler=_pull))
        router.add(_route("/images/{name}", handler=_fallback, methods=frozenset({"DELETE"})))
        router.compile()
        assert router.match("GET", "/images/json").route.handler is _pull
        match = router.match("DELETE", "/images/json")
        assert match.route.handler is _fallback
        assert match.path_params == {"name": "json"}

    def test_trailing_slash_is_ignored(self) -> None:
        router = Router()
        router.add(_route("/images/json"))
        router.compile()
        assert router.match("GET", "/images/json/").route.handler is _pull


class TestMethodFiltering:
    def test_method_not_allowed(self) -> None:
        router = Router()
        router.add(_route("/images/json"))
        router.compile()
        with pytest.raises(MethodNotAllowed) as exc_info:
            router.match("POST", "/images/json")
        assert exc_info.value.status == 405
        assert ("Allow", "GET") in exc_info.value.headers

    def test_allow_header_lists_every_method(self) -> None:
        router = Router()
        router.add(_route("/images/{name}", methods=frozenset({"DELETE"})))
        router.add(_route("/images/{name}", methods=frozenset({"GET"}), handler=_fallback))
        router.compile()
        with pytest.raises(MethodNotAllowed) as exc_info:
            router.match("PUT", "/images/alpine")
        assert ("Allow", "DELETE, GET") in exc_info.value.headers

    def test_any_method_route(self) -> None:
        router = Router()
        router.add(_route("/images/{name}/exists", methods=None))
        router.compile()
        for method in ("GET", "HEAD", "POST", "DELETE"):
            assert router.match(method, "/images/alpine/exists").route.handler is _pull


class TestQueryPredicates:
    def _create_router(self, *, with_fallback: bool = False) -> Router:
        router = Router()
        post = frozenset({"POST"})
        router.add(_route("/images/create", _pull, post, frozenset({"fromImage"})))
        router.add(_route("/images/create", _import, post, frozenset({"fromSrc"})))
        if with_fallback:
            router.add(_route("/images/create", _fallback, post))
        router.compile()
        return router

    def test_first_predicate(self) -> None:
        router = self._create_router()
        assert router.match("POST", "/images/create", {"fromImage": "alpine"}).route.handler is _pull

    def test_second_predicate(self) -> None:
        router = self._create_router()
        assert router.match("POST", "/images/create", {"fromSrc": "-"}).route.handler is _import

    def test_blank_value_counts_as_present(self) -> None:
        router = self._create_router()
        assert router.match("POST", "/images/create", {"fromSrc": ""}).route.handler is _import

    def test_both_present_first_registered_wins(self) -> None:
        router = self._create_router()
        query = {"fromImage": "alpine", "fromSrc": "-"}
        assert router.match("POST", "/images/create", query).route.handler is _pull

    def test_neither_present_is_not_found(self) -> None:
        router = self._create_router()
        with pytest.raises(NotFound):
            router.match("POST", "/images/create", {})

    def test_neither_present_uses_fallback(self) -> None:
        router = self._create_router(with_fallback=True)
        assert router.match("POST", "/images/create", {"tag": "3"}).route.handler is _fallback

    def test_unreferenced_parameters_are_ignored(self) -> None:
        router = self._create_router()
        query = {"fromImage": "alpine", "tag": "3.19", "platform": "linux"}
        assert router.match("POST", "/images/create", query).route.handler is _pull

    def test_wrong_method_is_method_not_allowed(self) -> None:
        router = self._create_router()
        with pytest.raises(MethodNotAllowed):
            router.match("GET", "/images/create", {"fromImage": "alpine"})


class TestRegistration:
    def test_routes_in_registration_order(self) -> None:
        router = Router()
        first = _route("/images/json")
        second = _route("/images/{name}/json")
        router.add(first)
        router.add(second)
        assert router.routes == [first, second]

    def test_add_after_compile(self) -> None:
        router = Router()
        router.compile()
        with pytest.raises(RuntimeError):
            router.add(_route("/images/json"))

    def test_duplicate_route(self) -> None:
        router = Router()
        router.add(_route("/images/json"))
        with pytest.raises(RouteConflict, match="duplicates"):
            router.add(_route("/images/json", handler=_fallback))

    def test_fallback_before_predicate_is_shadowing(self) -> None:
        router = Router()
        post = frozenset({"POST"})
        router.add(_route("/images/create", _fallback, post))
        with pytest.raises(RouteConflict, match="shadowed"):
            router.add(_route("/images/create", _pull, post, frozenset({"fromImage"})))

    def test_any_method_route_shadows_specific(self) -> None:
        router = Router()
        router.add(_route("/images/{name}/tree", methods=None))
        with pytest.raises(RouteConflict):
            router.add(_route("/images/{name}/tree", methods=frozenset({"GET"})))

    def test_disjoint_methods_coexist(self) -> None:
        router = Router()
        router.add(_route("/images/{name}", methods=frozenset({"GET"})))
        router.add(_route("/images/{name}", methods=frozenset({"DELETE"})))
        assert len(router.routes) == 2

    def test_conflicting_param_names(self) -> None:
        router = Router()
        router.add(_route("/images/{name}/json"))
        with pytest.raises(ConfigurationError):
            router.add(_route("/images/{id}/history"))

    def test_conflict_message_names_namespace(self) -> None:
        router = Router()
        route = Route("/v1.40/libpod/images/json", _pull, frozenset({"GET"}), namespace=Namespace.NATIVE)
        router.add(route)
        with pytest.raises(RouteConflict, match=r"\[native\]"):
            router.add(route)

    def test_param_route_shadows_later_static_route(self) -> None:
        router = Router()
        router.add(_route("/images/{name}", handler=_fallback))
        with pytest.raises(RouteConflict, match="shadowed"):
            router.add(_route("/images/json", handler=_pull))

    def test_param_route_shadows_deeper_static_route(self) -> None:
        router = Router()
        router.add(_route("/v{version:version}/images/{name}/json", handler=_fallback))
        with pytest.raises(RouteConflict):
            router.add(_route("/v1.40/images/alpine/json", handler=_pull))

    def test_static_before_param_is_not_shadowing(self) -> None:
        router = Router()
        router.add(_route("/images/json", handler=_pull))
        router.add(_route("/images/{name}", handler=_fallback))
        assert len(router.routes) == 2

    def test_param_pattern_must_accept_static_value(self) -> None:
        router = Router()
        router.add(_route("/v{version:version}/images/json", handler=_fallback))
        router.add(_route("/vnext/images/json", handler=_pull))
        assert len(router.routes) == 2

    def test_param_route_with_predicate_leaves_static_reachable(self) -> None:
        router = Router()
        router.add(_route("/images/{name}", handler=_fallback, queries=frozenset({"all"})))
        router.add(_route("/images/json", handler=_pull))
        assert len(router.routes) == 2
