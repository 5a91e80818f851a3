"""Server import resolution — ``"module:attribute"`` strings to APIServer instances.

Shared by ``podgate routes`` and ``podgate run``.
"""

import importlib

from podgate.app import APIServer
from podgate.config import APIConfig
from podgate.errors import ConfigurationError


def resolve_app(import_string: str, config: APIConfig | None = None) -> APIServer:
    """Resolve an import string to an ``APIServer``.

    Accepts ``"module:attribute"``; a bare ``"module"`` looks up ``app``.
    A callable that is not already a server is treated as a factory and
    called, with *config* when one is given.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the result is not an ``APIServer``, or *config* was
            given for a ready-made server that cannot take it.
        ConfigurationError: If the factory rejects the configuration.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if isinstance(obj, APIServer):
        if config is not None:
            msg = f"{import_string!r} is a server instance; configuration flags need a factory"
            raise TypeError(msg)
        return obj

    if callable(obj):
        try:
            obj = obj() if config is None else obj(config)
        except ConfigurationError:
            raise
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, APIServer):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a podgate.APIServer"
        raise TypeError(msg)

    return obj
