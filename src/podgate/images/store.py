"""In-memory image store.

The reference storage collaborator behind the image handlers. Holds
``Image`` records keyed by ID and a tag index; every operation takes the
store lock, since sync handlers run concurrently on worker threads.

Names resolve in this order: full ID (with or without ``sha256:``),
tag (``alpine`` means ``alpine:latest``), then unique ID prefix.
"""

from __future__ import annotations

import fnmatch
import hashlib
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from podgate.errors import BadParameter, Conflict, NoSuchContainer, NoSuchImage

logger = logging.getLogger("podgate.images")

DIGEST_PREFIX = "sha256:"


def digest_of(data: bytes | str) -> str:
    """Hex sha256 of *data*."""
    raw = data.encode("utf-8") if isinstance(data, str) else data
    return hashlib.sha256(raw).hexdigest()


def normalize_reference(name: str) -> str:
    """Append ``:latest`` when *name* carries no tag or digest."""
    if "@" in name:
        return name
    last = name.rsplit("/", 1)[-1]
    return name if ":" in last else f"{name}:latest"


def split_reference(reference: str) -> tuple[str, str]:
    """``"quay.io/app:1"`` -> ``("quay.io/app", "1")``."""
    repo, _, tag = normalize_reference(reference).rpartition(":")
    return repo, tag


@dataclass(frozen=True, slots=True)
class Image:
    """One stored image. ``id`` is the bare hex digest."""

    id: str
    layers: tuple[str, ...] = ()
    repo_tags: tuple[str, ...] = ()
    parent: str = ""
    created: datetime = field(default_factory=lambda: datetime.now(UTC))
    size: int = 0
    labels: Mapping[str, str] = field(default_factory=dict)
    comment: str = ""
    created_by: str = ""
    author: str = ""
    architecture: str = "amd64"
    os: str = "linux"

    @property
    def full_id(self) -> str:
        return f"{DIGEST_PREFIX}{self.id}"

    @property
    def dangling(self) -> bool:
        return not self.repo_tags


class MemoryImageStore:
    """Thread-safe in-memory image and container bookkeeping."""

    __slots__ = ("_containers", "_images", "_lock")

    def __init__(self, images: Iterable[Image] = ()) -> None:
        self._lock = threading.RLock()
        self._images: dict[str, Image] = {}
        # container name -> image id (only what commit and prune need)
        self._containers: dict[str, str] = {}
        for image in images:
            self.add(image)

    # -- Lookup --

    def get(self, name: str) -> Image:
        """Resolve *name* to an image. Raises ``NoSuchImage``."""
        with self._lock:
            return self._images[self._resolve(name)]

    def exists(self, name: str) -> bool:
        with self._lock:
            try:
                self._resolve(name)
            except NoSuchImage:
                return False
            return True

    def list(
        self,
        *,
        all: bool = False,  # noqa: A002 (mirrors the API query parameter)
        filters: Mapping[str, list[str]] | None = None,
    ) -> list[Image]:
        """Images, newest first. Intermediate images only when *all* is set."""
        with self._lock:
            parents = {img.parent for img in self._images.values() if img.parent}
            result = [
                img
                for img in self._images.values()
                if (all or img.repo_tags or img.id not in parents)
                and _matches_filters(img, filters or {})
            ]
        return sorted(result, key=lambda img: img.created, reverse=True)

    def children(self, name: str) -> list[Image]:
        with self._lock:
            image_id = self._resolve(name)
            return [img for img in self._images.values() if img.parent == image_id]

    def containers_using(self, image_id: str) -> int:
        with self._lock:
            return sum(1 for used in self._containers.values() if used == image_id)

    # -- Mutation --

    def add(self, image: Image) -> Image:
        """Store *image*, moving any of its tags off other images."""
        with self._lock:
            tags = tuple(normalize_reference(t) for t in image.repo_tags)
            for tag in tags:
                self._untag_everywhere(tag)
            existing = self._images.get(image.id)
            if existing is not None:
                tags = tuple(dict.fromkeys((*existing.repo_tags, *tags)))
            image = replace(image, repo_tags=tags)
            self._images[image.id] = image
            logger.debug("stored image %s tags=%s", image.id[:12], ",".join(tags))
            return image

    def tag(self, name: str, repo: str, tag: str = "latest") -> Image:
        """Add ``repo:tag`` to the image named *name*."""
        if not repo:
            msg = "repo is required"
            raise BadParameter(msg)
        reference = normalize_reference(f"{repo}:{tag or 'latest'}")
        with self._lock:
            image = self._images[self._resolve(name)]
            if reference in image.repo_tags:
                return image
            self._untag_everywhere(reference)
            image = replace(image, repo_tags=(*image.repo_tags, reference))
            self._images[image.id] = image
            return image

    def remove(self, name: str, *, force: bool = False) -> list[dict[str, str]]:
        """Untag or delete *name*; returns Docker-style ``Untagged``/``Deleted`` records."""
        with self._lock:
            image_id = self._resolve(name)
            image = self._images[image_id]
            reference = normalize_reference(name)
            by_tag = reference in image.repo_tags

            if by_tag and len(image.repo_tags) > 1 and not force:
                self._images[image_id] = replace(
                    image, repo_tags=tuple(t for t in image.repo_tags if t != reference)
                )
                return [{"Untagged": reference}]

            if not by_tag and len(image.repo_tags) > 1 and not force:
                msg = (
                    f"unable to delete {image_id[:12]} (must be forced) - "
                    "image is referenced in multiple repositories"
                )
                raise Conflict(msg)

            if any(img.parent == image_id for img in self._images.values()):
                msg = f"unable to delete {image_id[:12]} (cannot be forced) - image has dependent child images"
                raise Conflict(msg)

            if image_id in self._containers.values() and not force:
                msg = f"unable to delete {image_id[:12]} (must be forced) - image is being used by a container"
                raise Conflict(msg)

            del self._images[image_id]
            records = [{"Untagged": t} for t in image.repo_tags]
            records.append({"Deleted": image.full_id})
            return records

    def prune(self, *, all: bool = False) -> list[Image]:  # noqa: A002
        """Delete unused images; only dangling ones unless *all*.

        Repeats until nothing else qualifies, so whole unused chains go.
        """
        removed: list[Image] = []
        with self._lock:
            while True:
                parents = {img.parent for img in self._images.values() if img.parent}
                in_use = set(self._containers.values())
                doomed = [
                    img
                    for img in self._images.values()
                    if img.id not in parents
                    and img.id not in in_use
                    and (all or img.dangling)
                ]
                if not doomed:
                    break
                for img in doomed:
                    del self._images[img.id]
                removed.extend(doomed)
        logger.info("pruned %d images", len(removed))
        return removed

    def add_container(self, container: str, image: str) -> None:
        """Record that *container* runs *image*."""
        with self._lock:
            self._containers[container] = self._resolve(image)

    def container_image(self, container: str) -> Image:
        with self._lock:
            image_id = self._containers.get(container)
            if image_id is None:
                msg = f"no such container: {container}"
                raise NoSuchContainer(msg)
            return self._images[image_id]

    # -- Derived views --

    def history(self, name: str) -> list[Image]:
        """The image and its ancestors, newest first."""
        with self._lock:
            chain = [self._images[self._resolve(name)]]
            while chain[-1].parent and chain[-1].parent in self._images:
                chain.append(self._images[chain[-1].parent])
            return chain

    def search(self, term: str, limit: int = 25) -> list[str]:
        """Repository names containing *term*, sorted."""
        with self._lock:
            repos = {
                split_reference(tag)[0]
                for img in self._images.values()
                for tag in img.repo_tags
            }
        return sorted(r for r in repos if term.lower() in r.lower())[:limit]

    # -- Internal --

    def _resolve(self, name: str) -> str:
        if not name:
            msg = "image name is required"
            raise BadParameter(msg)
        bare = name.removeprefix(DIGEST_PREFIX)
        if bare in self._images:
            return bare

        reference = normalize_reference(name)
        for img in self._images.values():
            if reference in img.repo_tags:
                return img.id

        matches = [image_id for image_id in self._images if image_id.startswith(bare)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            msg = f"short ID {name!r} is ambiguous"
            raise Conflict(msg)
        msg = f"no such image: {name}"
        raise NoSuchImage(msg)

    def _untag_everywhere(self, reference: str) -> None:
        for image_id, img in list(self._images.items()):
            if reference in img.repo_tags:
                self._images[image_id] = replace(
                    img, repo_tags=tuple(t for t in img.repo_tags if t != reference)
                )


def _matches_filters(image: Image, filters: Mapping[str, list[str]]) -> bool:
    """Docker list filters: ``dangling``, ``reference``, ``label``."""
    for value in filters.get("dangling", []):
        if image.dangling != (value.lower() in ("true", "1")):
            return False
    references = filters.get("reference", [])
    if references and not any(
        fnmatch.fnmatch(tag, pattern) or fnmatch.fnmatch(split_reference(tag)[0], pattern)
        for pattern in references
        for tag in image.repo_tags
    ):
        return False
    for label in filters.get("label", []):
        key, sep, value = label.partition("=")
        if key not in image.labels or (sep and image.labels[key] != value):
            return False
    return True
