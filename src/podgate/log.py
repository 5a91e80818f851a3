"""Logging setup for the ``podgate`` logger tree.

Modules log through named children (``podgate.server``,
``podgate.routing``, ``podgate.images``); this only attaches a handler
to their common parent.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "info") -> logging.Logger:
    """Set the ``podgate`` logger level and attach one stderr handler.

    Safe to call repeatedly: the handler is only added once.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)

    logger = logging.getLogger("podgate")
    logger.setLevel(numeric)
    if not any(getattr(h, "_podgate", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._podgate = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
