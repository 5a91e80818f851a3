"""Handler context — the server-wide state every handler receives.

Built once by ``APIServer`` and passed as the first argument to every
handler, whichever namespace or collaborator module it belongs to.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from podgate.config import APIConfig


@dataclass(frozen=True, slots=True)
class HandlerContext:
    """Shared, read-only handler dependencies.

    ``store`` is the image storage collaborator; the router never
    inspects it.
    """

    store: Any
    config: APIConfig = field(default_factory=APIConfig)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("podgate.images"))
