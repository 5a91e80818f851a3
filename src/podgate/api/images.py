"""Image routes for the compat and native namespaces.

``register_image_routes`` declares every image operation exactly once,
in a fixed order. Operations sharing a path and method are told apart by
their required query parameters (``/images/create?fromImage=`` vs
``?fromSrc=``); the predicate-bearing routes come first.
"""

from __future__ import annotations

from dataclasses import dataclass

from podgate._internal.types import Handler
from podgate.routing.mux import Multiplexer
from podgate.routing.route import RouteSpec


@dataclass(frozen=True, slots=True)
class ImageHandlers:
    """The business handlers the image routes point at.

    Fields prefixed ``compat_``/``native_`` are namespace-specific
    variants of one capability; unprefixed fields serve both namespaces
    or exist on only one of them.
    """

    create_image_from_image: Handler
    create_image_from_src: Handler
    compat_get_images: Handler
    native_get_images: Handler
    load_image: Handler
    compat_prune_images: Handler
    native_prune_images: Handler
    search_images: Handler
    remove_image: Handler
    compat_export_image: Handler
    native_export_image: Handler
    history_image: Handler
    compat_get_image: Handler
    native_get_image: Handler
    tag_image: Handler
    commit_container: Handler
    build_image: Handler
    image_exists: Handler
    image_tree: Handler

    @classmethod
    def default(cls) -> ImageHandlers:
        """Handlers backed by the in-memory reference store."""
        from podgate.images import common, compat, native

        return cls(
            create_image_from_image=compat.create_image_from_image,
            create_image_from_src=compat.create_image_from_src,
            compat_get_images=compat.get_images,
            native_get_images=native.get_images,
            load_image=common.load_image,
            compat_prune_images=compat.prune_images,
            native_prune_images=native.prune_images,
            search_images=common.search_images,
            remove_image=common.remove_image,
            compat_export_image=compat.export_image,
            native_export_image=native.export_image,
            history_image=common.history_image,
            compat_get_image=compat.get_image,
            native_get_image=native.get_image,
            tag_image=common.tag_image,
            commit_container=compat.commit_container,
            build_image=compat.build_image,
            image_exists=native.image_exists,
            image_tree=native.image_tree,
        )


def register_image_routes(mux: Multiplexer, handlers: ImageHandlers | None = None) -> None:
    """Declare all image routes on *mux*.

    Must run once per server, before the router is compiled. A second
    call raises ``RouteConflict`` on the first operation name.
    """
    h = handlers or ImageHandlers.default()
    op = mux.register_operation

    op(
        "images.create.pull",
        compat=RouteSpec.of("/images/create", h.create_image_from_image, "POST", queries=("fromImage",)),
    )
    op(
        "images.create.import",
        compat=RouteSpec.of("/images/create", h.create_image_from_src, "POST", queries=("fromSrc",)),
    )
    op(
        "images.list",
        compat=RouteSpec.of("/images/json", h.compat_get_images, "GET"),
        native=RouteSpec.of("/images/json", h.native_get_images, "GET"),
    )
    op(
        "images.load",
        compat=RouteSpec.of("/images/load", h.load_image, "POST"),
        native=RouteSpec.of("/images/load", h.load_image, "POST"),
    )
    op(
        "images.prune",
        compat=RouteSpec.of("/images/prune", h.compat_prune_images, "POST"),
        native=RouteSpec.of("/images/prune", h.native_prune_images, "POST"),
    )
    op(
        "images.search",
        compat=RouteSpec.of("/images/search", h.search_images, "GET"),
        native=RouteSpec.of("/images/search", h.search_images, "GET"),
    )
    op(
        "images.remove",
        compat=RouteSpec.of("/images/{name}", h.remove_image, "DELETE"),
        native=RouteSpec.of("/images/{name}", h.remove_image, "DELETE"),
    )
    op(
        "images.export",
        compat=RouteSpec.of("/images/{name}/get", h.compat_export_image, "GET"),
        native=RouteSpec.of("/images/{name}/get", h.native_export_image, "GET"),
    )
    op(
        "images.history",
        compat=RouteSpec.of("/images/{name}/history", h.history_image, "GET"),
        native=RouteSpec.of("/images/{name}/history", h.history_image, "GET"),
    )
    op(
        "images.inspect",
        compat=RouteSpec.of("/images/{name}/json", h.compat_get_image, "GET"),
        native=RouteSpec.of("/images/{name}/json", h.native_get_image, "GET"),
    )
    op(
        "images.tag",
        compat=RouteSpec.of("/images/{name}/tag", h.tag_image, "POST"),
        native=RouteSpec.of("/images/{name}/tag", h.tag_image, "POST"),
    )
    op("images.commit", compat=RouteSpec.of("/commit", h.commit_container, "POST"))
    op("images.build", compat=RouteSpec.of("/build", h.build_image, "POST"))
    op("images.exists", native=RouteSpec.of("/images/{name}/exists", h.image_exists))
    op("images.tree", native=RouteSpec.of("/images/{name}/tree", h.image_tree))
