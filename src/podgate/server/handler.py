"""ASGI dispatch: scope in, routed handler call, response out.

Nothing else in podgate reads raw ASGI. Builds a Request from the scope,
matches it against the frozen route table, calls the handler through
the adapter, and sends the result back.

Routing failures are answered here and never reach handler code.
Handler failures are rendered as raised, without retry or rewriting.
"""

from podgate._internal.asgi import Receive, Scope, Send
from podgate._internal.invoke import invoke
from podgate.context import HandlerContext
from podgate.errors import HTTPError, RoutingError
from podgate.http.request import Request
from podgate.http.response import AnyResponse, StreamingResponse
from podgate.routing.router import Router
from podgate.server.errors import handle_http_error, handle_internal_error
from podgate.server.negotiation import negotiate
from podgate.server.sender import send_response, send_streaming_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    ctx: HandlerContext,
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response: AnyResponse

    try:
        match = router.match(request.method, request.raw_path, request.query)
    except RoutingError as exc:
        response = handle_http_error(exc, request)
    else:
        request = request.with_path_params(match.path_params)
        try:
            result = await invoke(match.route.handler, ctx, request)
            response = negotiate(result)
        except HTTPError as exc:
            response = handle_http_error(exc, request)
        except Exception as exc:
            response = handle_internal_error(exc, request, debug=debug)

    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send)
    else:
        await send_response(response, send)
