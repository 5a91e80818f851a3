"""Server configuration.

APIConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class APIConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = APIConfig(api_version="1.40", port=8080)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    workers: int = 0  # 0 = auto-detect from CPU count

    # API versioning: None accepts any numeric version segment (/v1.40, /v4.0.0)
    api_version: str | None = None

    # Logging
    log_level: str = "info"
