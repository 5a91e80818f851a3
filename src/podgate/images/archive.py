"""Image tarballs for export, load, import, and build contexts.

The archive layout follows docker-archive closely enough for a
round trip through this service: a ``manifest.json`` index plus one
``<id>.json`` config per image. Layer blobs are not materialized; the
reference store only tracks layer digests.
"""

from __future__ import annotations

import io
import json
import tarfile
import time
from collections.abc import Iterator
from datetime import datetime

from podgate.errors import BadParameter
from podgate.images.store import Image

CHUNK_SIZE = 64 * 1024


def _add_file(tar: tarfile.TarFile, name: str, data: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mtime = int(time.time())
    tar.addfile(info, io.BytesIO(data))


def _config_of(image: Image) -> dict[str, object]:
    return {
        "id": image.id,
        "parent": image.parent,
        "created": image.created.isoformat(),
        "created_by": image.created_by,
        "comment": image.comment,
        "author": image.author,
        "labels": dict(image.labels),
        "layers": list(image.layers),
        "size": image.size,
        "architecture": image.architecture,
        "os": image.os,
    }


def write_archive(images: list[Image], *, repo_tags: dict[str, list[str]] | None = None) -> bytes:
    """Pack *images* into a tarball.

    *repo_tags* overrides the tags recorded per image ID; by default each
    image carries its own tags.
    """
    manifest = []
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for image in images:
            config_name = f"{image.id}.json"
            _add_file(tar, config_name, json.dumps(_config_of(image)).encode("utf-8"))
            tags = (repo_tags or {}).get(image.id, list(image.repo_tags))
            manifest.append({"Config": config_name, "RepoTags": tags, "Layers": list(image.layers)})
        _add_file(tar, "manifest.json", json.dumps(manifest).encode("utf-8"))
    return buf.getvalue()


def read_archive(data: bytes) -> list[Image]:
    """Unpack images from a tarball written by ``write_archive``.

    Raises ``BadParameter`` when the tarball is unreadable or lacks a manifest.
    """
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tar:
            manifest = json.loads(_read_member(tar, "manifest.json"))
            images = []
            for entry in manifest:
                config = json.loads(_read_member(tar, entry["Config"]))
                images.append(
                    Image(
                        id=config["id"],
                        layers=tuple(config.get("layers", entry.get("Layers", []))),
                        repo_tags=tuple(entry.get("RepoTags") or ()),
                        parent=config.get("parent", ""),
                        created=datetime.fromisoformat(config["created"]),
                        size=config.get("size", 0),
                        labels=config.get("labels", {}),
                        comment=config.get("comment", ""),
                        created_by=config.get("created_by", ""),
                        author=config.get("author", ""),
                        architecture=config.get("architecture", "amd64"),
                        os=config.get("os", "linux"),
                    )
                )
    except (tarfile.TarError, KeyError, TypeError, AttributeError, ValueError) as exc:
        msg = f"invalid image archive: {exc}"
        raise BadParameter(msg) from exc
    return images


def read_text_member(data: bytes, name: str) -> str:
    """Read one text file (e.g. a Dockerfile) out of a build context tarball."""
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tar:
            return _read_member(tar, name).decode("utf-8")
    except (tarfile.TarError, KeyError) as exc:
        msg = f"cannot read {name!r} from build context: {exc}"
        raise BadParameter(msg) from exc


def _read_member(tar: tarfile.TarFile, name: str) -> bytes:
    member = tar.extractfile(name.removeprefix("./"))
    if member is None:
        raise KeyError(name)
    return member.read()


def iter_chunks(data: bytes, size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield *data* in *size*-byte slices."""
    for start in range(0, len(data), size):
        yield data[start : start + size]
