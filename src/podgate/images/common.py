"""Image handlers shared by the compat and native namespaces.

Both surfaces route to these same functions; their request and response
shapes are identical on the two APIs.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from podgate.context import HandlerContext
from podgate.errors import BadParameter
from podgate.http.request import Request
from podgate.images.archive import read_archive
from podgate.images.store import Image


def parse_filters(request: Request) -> dict[str, list[str]]:
    """Decode the ``filters`` query parameter.

    Accepts both Docker encodings: ``{"dangling": ["true"]}`` and the
    legacy ``{"dangling": {"true": true}}``.
    """
    raw = request.query.get("filters")
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except ValueError as exc:
        msg = f"invalid filters: {exc}"
        raise BadParameter(msg) from exc
    if not isinstance(decoded, Mapping):
        msg = "filters must be a JSON object"
        raise BadParameter(msg)

    filters: dict[str, list[str]] = {}
    for key, value in decoded.items():
        if isinstance(value, Mapping):
            filters[key] = [k for k, enabled in value.items() if enabled]
        elif isinstance(value, list):
            filters[key] = [str(v) for v in value]
        else:
            filters[key] = [str(value)]
    return filters


def require_query(request: Request, name: str) -> str:
    """Return query parameter *name* or raise ``BadParameter``."""
    value = request.query.get(name)
    if not value:
        msg = f"query parameter {name!r} is required"
        raise BadParameter(msg)
    return value


def rfc3339(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


def history_entry(image: Image) -> dict[str, Any]:
    return {
        "Id": image.full_id,
        "Created": int(image.created.timestamp()),
        "CreatedBy": image.created_by,
        "Tags": list(image.repo_tags) or None,
        "Size": image.size,
        "Comment": image.comment,
    }


# -- Handlers --


async def load_image(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """POST /images/load — import every image in a tarball."""
    data = await request.body()
    if not data:
        msg = "request body must be an image archive"
        raise BadParameter(msg)
    loaded = [ctx.store.add(image) for image in read_archive(data)]
    names = [tag for image in loaded for tag in image.repo_tags] or [i.full_id for i in loaded]
    ctx.logger.info("loaded %d images", len(loaded))
    return 200, {"stream": "".join(f"Loaded image: {name}\n" for name in names)}


def search_images(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """GET /images/search — repositories whose name contains ``term``."""
    term = require_query(request, "term")
    limit = request.query.get_int("limit", 25) or 25
    return 200, [
        {
            "name": repo,
            "description": "",
            "star_count": 0,
            "is_official": "/" not in repo,
            "is_automated": False,
        }
        for repo in ctx.store.search(term, limit)
    ]


def remove_image(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """DELETE /images/{name} — untag or delete."""
    force = request.query.get_bool("force")
    return 200, ctx.store.remove(request.param("name"), force=force)


def history_image(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """GET /images/{name}/history — the image and its ancestors, newest first."""
    return 200, [history_entry(image) for image in ctx.store.history(request.param("name"))]


def tag_image(ctx: HandlerContext, request: Request) -> tuple[int, Any]:
    """POST /images/{name}/tag — add ``repo:tag``. 201 with no body."""
    repo = require_query(request, "repo")
    ctx.store.tag(request.param("name"), repo, request.query.get("tag") or "latest")
    return 201, None
