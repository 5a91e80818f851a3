"""Docker-compatible image handlers.

Response shapes follow the Docker Engine API: IDs carry the ``sha256:``
prefix, progress is streamed as JSON lines, list timestamps are Unix
seconds, inspect timestamps are RFC 3339.
"""

from __future__ import annotations

import json
import shlex
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from podgate.context import HandlerContext
from podgate.errors import BadParameter
from podgate.http.request import Request
from podgate.http.response import StreamingResponse
from podgate.images.archive import iter_chunks, read_text_member, write_archive
from podgate.images.common import parse_filters, require_query, rfc3339
from podgate.images.store import Image, digest_of, normalize_reference

JSON_STREAM = "application/json"


def _json_lines(messages: Iterable[dict[str, Any]]) -> StreamingResponse:
    return StreamingResponse(
        chunks=iter([json.dumps(m) + "\r\n" for m in messages]),
        content_type=JSON_STREAM,
    )


def _shell_words(line: str) -> list[str]:
    """Split a Dockerfile instruction the way a shell would."""
    try:
        return shlex.split(line)
    except ValueError as exc:
        msg = f"malformed Dockerfile instruction {line!r}: {exc}"
        raise BadParameter(msg) from exc



def image_summary(image: Image, containers: int) -> dict[str, Any]:
    return {
        "Id": image.full_id,
        "ParentId": f"sha256:{image.parent}" if image.parent else "",
        "RepoTags": list(image.repo_tags) or ["<none>:<none>"],
        "RepoDigests": [],
        "Created": int(image.created.timestamp()),
        "Size": image.size,
        "VirtualSize": image.size,
        "SharedSize": -1,
        "Labels": dict(image.labels) or None,
        "Containers": containers,
    }


def image_inspect(image: Image) -> dict[str, Any]:
    return {
        "Id": image.full_id,
        "RepoTags": list(image.repo_tags),
        "RepoDigests": [],
        "Parent": f"sha256:{image.parent}" if image.parent else "",
        "Comment": image.comment,
        "Created": rfc3339(image.created),
        "Author": image.author,
        "Config": {"Labels": dict(image.labels) or None},
        "Architecture": image.architecture,
        "Os": image.os,
        "Size": image.size,
        "VirtualSize": image.size,
        "RootFS": {"Type": "layers", "Layers": [f"sha256:{layer}" for layer in image.layers]},
    }


def _reference(name: str, tag: str | None) -> str:
    if tag and "@" not in name and ":" not in name.rsplit("/", 1)[-1]:
        return f"{name}:{tag}"
    return normalize_reference(name)


# -- Create --


def create_image_from_image(ctx: HandlerContext, request: Request) -> StreamingResponse:
    """POST /images/create?fromImage= — pull by reference.

    The in-memory store has no registry behind it; a pull records a
    single-layer image whose ID is derived from the reference.
    """
    reference = _reference(require_query(request, "fromImage"), request.query.get("tag"))
    repo, _, tag = reference.rpartition(":")

    if ctx.store.exists(reference):
        status = f"Status: Image is up to date for {reference}"
    else:
        ctx.store.add(
            Image(
                id=digest_of(reference),
                layers=(digest_of(f"{reference}#layer"),),
                repo_tags=(reference,),
                size=len(reference) * 1024,
                created_by=f"pull {reference}",
            )
        )
        status = f"Status: Downloaded newer image for {reference}"
        ctx.logger.info("pulled %s", reference)

    image = ctx.store.get(reference)
    return _json_lines(
        [
            {"status": f"Pulling from {repo}", "id": tag},
            {"status": f"Digest: {image.full_id}"},
            {"status": status},
        ]
    )


async def create_image_from_src(ctx: HandlerContext, request: Request) -> StreamingResponse:
    """POST /images/create?fromSrc= — import a root filesystem tarball.

    Only ``fromSrc=-`` (the tarball is the request body) is supported.
    """
    source = require_query(request, "fromSrc")
    if source != "-":
        msg = "only fromSrc=- (request body) is supported"
        raise BadParameter(msg)

    data = await request.body()
    if not data:
        msg = "request body must be a tarball"
        raise BadParameter(msg)

    repo = request.query.get("repo")
    tags = (_reference(repo, request.query.get("tag")),) if repo else ()
    image = ctx.store.add(
        Image(
            id=digest_of(data),
            layers=(digest_of(data),),
            repo_tags=tags,
            size=len(data),
            comment=request.query.get("message") or "",
            created_by="import from -",
        )
    )
    return _json_lines([{"status": image.full_id}])


# -- Read --


def get_images(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """GET /images/json"""
    images = ctx.store.list(all=request.query.get_bool("all"), filters=parse_filters(request))
    return 200, [image_summary(img, ctx.store.containers_using(img.id)) for img in images]


def get_image(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """GET /images/{name}/json"""
    return 200, image_inspect(ctx.store.get(request.param("name")))


def export_image(ctx: HandlerContext, request: Request) -> StreamingResponse:
    """GET /images/{name}/get — docker-archive tarball."""
    name = request.param("name")
    image = ctx.store.get(name)
    reference = normalize_reference(name)
    tags = [reference] if reference in image.repo_tags else list(image.repo_tags)
    archive = write_archive([image], repo_tags={image.id: tags})
    return StreamingResponse(chunks=iter_chunks(archive), content_type="application/x-tar")


# -- Write --


def prune_images(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """POST /images/prune — ``dangling=false`` widens the prune to all unused images."""
    dangling = parse_filters(request).get("dangling", ["true"])
    prune_all = any(v.lower() in ("false", "0") for v in dangling)
    removed = ctx.store.prune(all=prune_all)
    return 200, {
        "ImagesDeleted": [{"Deleted": img.full_id} for img in removed] or None,
        "SpaceReclaimed": sum(img.size for img in removed),
    }


async def commit_container(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """POST /commit — snapshot a container into a new image."""
    container = require_query(request, "container")
    base = ctx.store.container_image(container)

    try:
        config = await request.json() or {}
    except ValueError as exc:
        msg = f"invalid container config: {exc}"
        raise BadParameter(msg) from exc
    if not isinstance(config, dict):
        msg = "container config must be a JSON object"
        raise BadParameter(msg)

    now = datetime.now(UTC)
    layer = digest_of(f"{container}@{now.isoformat()}")
    repo = request.query.get("repo")
    image = ctx.store.add(
        Image(
            id=digest_of(f"{base.id}/{layer}"),
            layers=(*base.layers, layer),
            repo_tags=(_reference(repo, request.query.get("tag")),) if repo else (),
            parent=base.id,
            created=now,
            size=base.size,
            labels={**base.labels, **(config.get("Labels") or {})},
            comment=request.query.get("comment") or "",
            author=request.query.get("author") or "",
            created_by=f"commit {container}",
        )
    )
    return 201, {"Id": image.full_id}


async def build_image(ctx: HandlerContext, request: Request) -> StreamingResponse:
    """POST /build — build from a tarred context holding a Dockerfile.

    Every instruction after ``FROM`` becomes one intermediate image;
    only the final image receives the ``t`` tags.
    """
    context = await request.body()
    if not context:
        msg = "request body must be a build context tarball"
        raise BadParameter(msg)

    dockerfile = read_text_member(context, request.query.get("dockerfile") or "Dockerfile")
    steps = [
        line.strip()
        for line in dockerfile.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    if not steps or not steps[0].upper().startswith("FROM "):
        msg = "Dockerfile must start with a FROM instruction"
        raise BadParameter(msg)

    base_name = _shell_words(steps[0])[1]
    parent = None if base_name == "scratch" else ctx.store.get(base_name)
    labels = dict(parent.labels) if parent else {}
    layers = parent.layers if parent else ()
    current_id = parent.id if parent else ""

    messages: list[dict[str, Any]] = []
    total = len(steps)
    messages.append({"stream": f"Step 1/{total} : {steps[0]}\n"})
    if parent is not None:
        messages.append({"stream": f" ---> {parent.id[:12]}\n"})

    for index, step in enumerate(steps[1:], start=2):
        instruction, _, args = step.partition(" ")
        if instruction.upper() == "LABEL":
            for pair in _shell_words(args):
                key, _, value = pair.partition("=")
                labels[key] = value
        layer = digest_of(f"{current_id}/{step}")
        layers = (*layers, layer)
        image = ctx.store.add(
            Image(
                id=digest_of(f"{current_id}|{step}"),
                layers=layers,
                parent=current_id,
                labels=dict(labels),
                created_by=step,
                size=(parent.size if parent else 0) + len(step),
            )
        )
        current_id = image.id
        messages.append({"stream": f"Step {index}/{total} : {step}\n"})
        messages.append({"stream": f" ---> {current_id[:12]}\n"})

    if not current_id:
        msg = "Dockerfile produced no image"
        raise BadParameter(msg)

    final = ctx.store.get(current_id)
    messages.append({"aux": {"ID": final.full_id}})
    messages.append({"stream": f"Successfully built {final.id[:12]}\n"})
    for tag in request.query.get_list("t"):
        repo, _, version = normalize_reference(tag).rpartition(":")
        ctx.store.tag(final.id, repo, version)
        messages.append({"stream": f"Successfully tagged {normalize_reference(tag)}\n"})

    ctx.logger.info("built %s in %d steps", final.id[:12], total)
    return _json_lines(messages)
