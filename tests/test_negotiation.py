"""Tests for podgate.server.negotiation — handler results to responses."""

import pytest

from podgate.http.response import Response, StreamingResponse
from podgate.server.negotiation import negotiate


class TestNegotiate:
    def test_response_passes_through(self) -> None:
        response = Response.json({"a": 1}, status=202)
        assert negotiate(response) is response

    def test_streaming_response_passes_through(self) -> None:
        response = StreamingResponse(chunks=iter([b"x"]))
        assert negotiate(response) is response

    def test_json_body(self) -> None:
        response = negotiate((200, [{"Id": "abc"}]))
        assert isinstance(response, Response)
        assert response.content_type == "application/json"
        assert response.json_body() == [{"Id": "abc"}]

    def test_status_is_kept(self) -> None:
        assert negotiate((201, {"Id": "x"})).status == 201

    def test_none_body(self) -> None:
        response = negotiate((204, None))
        assert response.status == 204
        assert response.body_bytes == b""

    def test_bytes_body(self) -> None:
        response = negotiate((200, b"\x00\x01"))
        assert response.content_type == "application/octet-stream"
        assert response.body == b"\x00\x01"

    def test_str_body(self) -> None:
        response = negotiate((200, "OK"))
        assert response.content_type.startswith("text/plain")
        assert response.text == "OK"

    def test_iterator_body_streams(self) -> None:
        response = negotiate((200, iter([b"a", b"b"])))
        assert isinstance(response, StreamingResponse)
        assert response.status == 200

    def test_async_iterator_body_streams(self) -> None:
        async def chunks():
            yield b"a"

        assert isinstance(negotiate((200, chunks())), StreamingResponse)

    def test_list_is_json_not_stream(self) -> None:
        response = negotiate((200, ["sha256:a", "sha256:b"]))
        assert isinstance(response, Response)
        assert response.json_body() == ["sha256:a", "sha256:b"]

    @pytest.mark.parametrize("result", [None, "OK", {"a": 1}, (200,), ("200", {})])
    def test_rejects_other_results(self, result: object) -> None:
        with pytest.raises(TypeError, match="Handler returned"):
            negotiate(result)
