"""Tests for podgate._internal.invoke — the handler adapter."""

import functools
import threading

from podgate._internal.invoke import invoke


class TestInvoke:
    async def test_sync_handler(self) -> None:
        def handler(ctx, request):
            return 200, {"ctx": ctx, "request": request}

        assert await invoke(handler, "ctx", "req") == (200, {"ctx": "ctx", "request": "req"})

    async def test_async_handler(self) -> None:
        async def handler(ctx, request):
            return 201, None

        assert await invoke(handler, None, None) == (201, None)

    async def test_sync_handler_runs_off_the_event_loop_thread(self) -> None:
        seen: list[threading.Thread] = []

        def handler(ctx, request):
            seen.append(threading.current_thread())
            return 200, None

        await invoke(handler, None, None)
        assert seen[0] is not threading.current_thread()

    async def test_async_handler_runs_on_the_event_loop_thread(self) -> None:
        seen: list[threading.Thread] = []

        async def handler(ctx, request):
            seen.append(threading.current_thread())
            return 200, None

        await invoke(handler, None, None)
        assert seen[0] is threading.current_thread()

    async def test_partial_of_async_handler(self) -> None:
        async def handler(prefix, ctx, request):
            return 200, f"{prefix}{request}"

        assert await invoke(functools.partial(handler, "img-"), None, "x") == (200, "img-x")

    async def test_async_callable_object(self) -> None:
        class Handler:
            async def __call__(self, ctx, request):
                return 204, None

        assert await invoke(Handler(), None, None) == (204, None)

    async def test_exceptions_propagate_unchanged(self) -> None:
        error = ValueError("boom")

        def handler(ctx, request):
            raise error

        try:
            await invoke(handler, None, None)
        except ValueError as exc:
            assert exc is error
        else:
            raise AssertionError("expected ValueError")

    async def test_result_is_not_transformed(self) -> None:
        payload = object()

        def handler(ctx, request):
            return payload

        assert await invoke(handler, None, None) is payload
