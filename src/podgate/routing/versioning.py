"""API version prefixes for route paths.

Every registered path is prefixed with a version segment followed by its
namespace prefix::

    PathVersioner().versioned_path(Namespace.NATIVE, "/images/json")
    # "/v{version:version}/libpod/images/json"  (any numeric version)

    PathVersioner("1.40").versioned_path(Namespace.COMPAT, "/images/json")
    # "/v1.40/images/json"
"""

import re

from podgate.errors import ConfigurationError
from podgate.routing.params import CONVERTERS
from podgate.routing.route import Namespace

# Binds the version segment as the ``version`` path parameter.
VERSION_PATTERN = "/v{version:version}"


class PathVersioner:
    """Computes versioned route paths for one server instance.

    Holds a single version token so every route registered through it
    carries the same prefix.
    """

    __slots__ = ("_prefix", "version")

    def __init__(self, version: str | None = None) -> None:
        if version is not None:
            version = version.removeprefix("v")
            if not re.fullmatch(CONVERTERS["version"], version):
                msg = f"Invalid API version {version!r}; expected digits and dots, e.g. '1.40'"
                raise ConfigurationError(msg)
        self.version = version
        self._prefix = VERSION_PATTERN if version is None else f"/v{version}"

    def versioned_path(self, namespace: Namespace, path: str) -> str:
        """Return *path* with the version and namespace prefixes inserted."""
        if not path.startswith("/"):
            msg = f"Route path {path!r} must begin with '/'"
            raise ConfigurationError(msg)
        return f"{self._prefix}{namespace.prefix}{path}"
