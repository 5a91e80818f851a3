"""Native (libpod) image handlers.

Shapes follow the libpod API: bare hex IDs, a ``Dangling`` flag on list
entries, ``Digest`` and ``History`` on inspect, and the native-only
``exists`` and ``tree`` endpoints.
"""

from __future__ import annotations

import gzip
from typing import Any

from podgate.context import HandlerContext
from podgate.errors import BadParameter, NoSuchImage
from podgate.http.request import Request
from podgate.http.response import StreamingResponse
from podgate.images.archive import iter_chunks, write_archive
from podgate.images.common import history_entry, parse_filters, rfc3339
from podgate.images.store import Image, MemoryImageStore

EXPORT_FORMATS = ("docker-archive",)


def image_summary(image: Image, containers: int) -> dict[str, Any]:
    return {
        "Id": image.id,
        "ParentId": image.parent,
        "RepoTags": list(image.repo_tags),
        "RepoDigests": [],
        "Created": int(image.created.timestamp()),
        "Size": image.size,
        "SharedSize": 0,
        "VirtualSize": image.size,
        "Labels": dict(image.labels),
        "Containers": containers,
        "Dangling": image.dangling,
        "Names": list(image.repo_tags),
    }


def image_data(image: Image, history: list[Image]) -> dict[str, Any]:
    return {
        "Id": image.id,
        "Digest": image.full_id,
        "RepoTags": list(image.repo_tags),
        "RepoDigests": [],
        "Parent": image.parent,
        "Comment": image.comment,
        "Created": rfc3339(image.created),
        "Author": image.author,
        "Config": {"Labels": dict(image.labels)},
        "Architecture": image.architecture,
        "Os": image.os,
        "Size": image.size,
        "VirtualSize": image.size,
        "Labels": dict(image.labels),
        "Annotations": {},
        "RootFS": {"Type": "layers", "Layers": [f"sha256:{layer}" for layer in image.layers]},
        "History": [history_entry(entry) for entry in history],
    }


def get_images(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """GET /libpod/images/json"""
    images = ctx.store.list(all=request.query.get_bool("all"), filters=parse_filters(request))
    return 200, [image_summary(img, ctx.store.containers_using(img.id)) for img in images]


def get_image(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """GET /libpod/images/{name}/json"""
    name = request.param("name")
    return 200, image_data(ctx.store.get(name), ctx.store.history(name))


def image_exists(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """/libpod/images/{name}/exists — 204 when present, 404 otherwise."""
    name = request.param("name")
    if not ctx.store.exists(name):
        msg = f"no such image: {name}"
        raise NoSuchImage(msg)
    return 204, None


def prune_images(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """POST /libpod/images/prune — IDs of the removed images."""
    removed = ctx.store.prune(all=request.query.get_bool("all"))
    return 200, [img.id for img in removed]


def export_image(ctx: HandlerContext, request: Request) -> StreamingResponse:
    """GET /libpod/images/{name}/get — ``format`` and ``compress`` aware export."""
    fmt = request.query.get("format") or "docker-archive"
    if fmt not in EXPORT_FORMATS:
        msg = f"unsupported export format {fmt!r}; supported: {', '.join(EXPORT_FORMATS)}"
        raise BadParameter(msg)

    image = ctx.store.get(request.param("name"))
    archive = write_archive([image])
    if request.query.get_bool("compress"):
        archive = gzip.compress(archive)
        return StreamingResponse(chunks=iter_chunks(archive), content_type="application/gzip")
    return StreamingResponse(chunks=iter_chunks(archive), content_type="application/x-tar")


def image_tree(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """/libpod/images/{name}/tree — printable layer tree.

    With ``whatrequires`` set, lists the images built on top of this one
    instead of its layers.
    """
    name = request.param("name")
    image = ctx.store.get(name)
    lines = [
        f"Image ID: {image.id[:12]}",
        f"Tags:     [{' '.join(image.repo_tags)}]",
        f"Size:     {_human_size(image.size)}",
    ]
    if request.query.get_bool("whatrequires"):
        lines.append("Required by")
        lines.extend(_child_lines(ctx.store, image, ""))
    else:
        lines.append("Image Layers")
        lines.extend(_layer_lines(ctx.store.history(name)))
    return 200, {"Tree": "\n".join(lines) + "\n"}


def _layer_lines(history: list[Image]) -> list[str]:
    """One line per layer, oldest first; a layer that tops an image names its tags."""
    oldest_first = list(reversed(history))
    top_of: dict[str, list[str]] = {}
    for img in oldest_first:
        if img.layers and img.repo_tags:
            top_of.setdefault(img.layers[-1], []).extend(img.repo_tags)

    layers = history[0].layers if history else ()
    lines = []
    for index, layer in enumerate(layers):
        branch = "└── " if index == len(layers) - 1 else "├── "
        line = f"{branch}ID: {layer[:12]}"
        if layer in top_of:
            line += f" Top Layer of: [{' '.join(top_of[layer])}]"
        lines.append(line)
    return lines


def _child_lines(store: MemoryImageStore, image: Image, indent: str) -> list[str]:
    children = store.children(image.id)
    lines = []
    for index, child in enumerate(children):
        last = index == len(children) - 1
        tags = f" [{' '.join(child.repo_tags)}]" if child.repo_tags else ""
        lines.append(f"{indent}{'└── ' if last else '├── '}ID: {child.id[:12]}{tags}")
        lines.extend(_child_lines(store, child, indent + ("    " if last else "│   ")))
    return lines


def _human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1000:
            return f"{value:.3g}{unit}"
        value /= 1000
    return f"{value:.3g}GB"
