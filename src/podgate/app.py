"""Podgate API server.

Mutable during setup (route registration, lifecycle hooks).
Frozen at runtime when ``run()`` or ``__call__()`` is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from podgate._internal.asgi import Receive, Scope, Send
from podgate.config import APIConfig
from podgate.context import HandlerContext
from podgate.routing.mux import Multiplexer
from podgate.routing.router import Router
from podgate.routing.versioning import PathVersioner
from podgate.server.handler import handle_request

logger = logging.getLogger("podgate.server")


class APIServer:
    """One server instance: a route table, its handler context, and hooks.

    Thread safety:
        The setup phase is single-threaded. The freeze transition uses a
        Lock + double-check so exactly one thread compiles the route
        table, even if several ASGI workers hit ``__call__()`` at once.
        After that the table is read-only and shared without locking.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "ctx",
        "mux",
    )

    def __init__(self, config: APIConfig | None = None, *, store: Any = None) -> None:
        self.config: APIConfig = config or APIConfig()
        self._router = Router()
        self.mux = Multiplexer(self._router, PathVersioner(self.config.api_version))

        if store is None:
            from podgate.images.store import MemoryImageStore

            store = MemoryImageStore()
        self.ctx = HandlerContext(store=store, config=self.config)

        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

    @property
    def router(self) -> Router:
        return self._router

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run once during ASGI lifespan startup (sync or async)."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run once during ASGI lifespan shutdown (sync or async)."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Compile the route table and serve with pounce."""
        from podgate.log import configure_logging
        from podgate.server.serve import run_server

        configure_logging(self.config.log_level)
        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            workers=self.config.workers,
            log_level=self.config.log_level,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            ctx=self.ctx,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the server at startup (before the first HTTP request),
        so a route conflict surfaces as ``lifespan.startup.failed``.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    await _run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await _run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Compile the route table once. Thread-safe via double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._router.compile()
            self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the server after it has started serving."
            raise RuntimeError(msg)


async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
    for hook in hooks:
        result = hook()
        if inspect.isawaitable(result):
            await result


def create_app(config: APIConfig | None = None, *, store: Any = None) -> APIServer:
    """Build a server with every image route registered.

    Usable as a CLI factory: ``podgate run podgate.app:create_app``.
    """
    from podgate.api.images import register_image_routes

    app = APIServer(config, store=store)
    register_image_routes(app.mux)
    return app
