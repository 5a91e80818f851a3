"""Tests for podgate.server.sender — ASGI message translation."""

from typing import Any

from podgate.http.response import Response, StreamingResponse
from podgate.server.sender import send_response, send_streaming_response


class _Capture:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.messages[0]["headers"])

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages[1:])


class TestSendResponse:
    async def test_json_response(self) -> None:
        send = _Capture()
        await send_response(Response.json({"Id": "sha256:abc"}, status=201), send)
        start = send.messages[0]
        assert start["type"] == "http.response.start"
        assert start["status"] == 201
        assert send.headers[b"content-type"] == b"application/json"
        assert send.headers[b"content-length"] == str(len(send.body)).encode()
        assert send.body == b'{"Id": "sha256:abc"}'

    async def test_extra_headers_are_lowercased(self) -> None:
        send = _Capture()
        await send_response(Response().with_header("X-Podgate-Error", "routing"), send)
        assert send.headers[b"x-podgate-error"] == b"routing"

    async def test_no_body_for_204(self) -> None:
        send = _Capture()
        await send_response(Response(body=b"ignored", status=204), send)
        assert send.body == b""
        assert send.headers[b"content-length"] == b"0"


class TestSendStreamingResponse:
    async def test_sync_chunks(self) -> None:
        send = _Capture()
        response = StreamingResponse(chunks=iter([b"a", "b", b"", b"c"]))
        await send_streaming_response(response, send)
        assert send.headers[b"transfer-encoding"] == b"chunked"
        assert send.body == b"abc"
        assert send.messages[-1] == {"type": "http.response.body", "body": b"", "more_body": False}

    async def test_async_chunks(self) -> None:
        async def chunks():
            yield b'{"status": "Pulling"}\r\n'
            yield b'{"status": "Done"}\r\n'

        send = _Capture()
        await send_streaming_response(StreamingResponse(chunks=chunks(), content_type="application/json"), send)
        assert send.headers[b"content-type"] == b"application/json"
        assert send.body.count(b"\r\n") == 2

    async def test_failure_mid_stream_closes_stream(self) -> None:
        def chunks():
            yield b"partial"
            raise RuntimeError("layer vanished")

        send = _Capture()
        await send_streaming_response(StreamingResponse(chunks=chunks()), send)
        assert send.messages[0]["status"] == 200
        assert send.body == b"partial"
        assert send.messages[-1]["more_body"] is False
