"""Handler adapter — call any business handler through one convention.

Every handler, whichever collaborator module defines it and whichever
namespace it serves, is called as ``handler(ctx, request)``. Handlers may
be ``def`` or ``async def``; sync handlers run in a worker thread so a
blocking image operation does not stall the event loop.

The adapter does not retry, time out, or transform the result.

Usage::

    from podgate._internal.invoke import invoke

    result = await invoke(route.handler, ctx, request)
"""

import functools
import inspect
from typing import Any

import anyio.to_thread

from podgate._internal.types import Handler


async def invoke(handler: Handler, ctx: Any, request: Any) -> Any:
    """Call a handler and await the result if it's a coroutine."""
    if _is_async(handler):
        return await handler(ctx, request)

    result = await anyio.to_thread.run_sync(functools.partial(handler, ctx, request))
    if inspect.isawaitable(result):
        result = await result
    return result


def _is_async(handler: Handler) -> bool:
    target = handler
    while isinstance(target, functools.partial):
        target = target.func
    return inspect.iscoroutinefunction(target) or inspect.iscoroutinefunction(
        getattr(target, "__call__", None)
    )
