"""Unit tests for the httpx request executor and event streams."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from fakes import event_stream
from stitch_sdk.config import StitchAppClientConfig
from stitch_sdk.errors import NetworkError, TimeoutError
from stitch_sdk.transport import (
    HttpRequestExecutor,
    RawResponse,
    Request,
    ResponseStatus,
    ServerSentEvent,
)


def make_executor(
    config: StitchAppClientConfig,
    handler: Callable[[httpx.Request], httpx.Response],
) -> HttpRequestExecutor:
    client = httpx.Client(
        base_url=config.base_url_str,
        transport=httpx.MockTransport(handler),
    )
    return HttpRequestExecutor(config, client=client)


class TestClassify:
    """Tests for response classification."""

    @pytest.mark.parametrize("status_code", [200, 201, 204, 299])
    def test_success_codes(self, status_code: int) -> None:
        assert RawResponse.classify(status_code, b"") is ResponseStatus.OK

    def test_invalid_session_is_auth_expired(self) -> None:
        body = b'{"error": "invalid session", "error_code": "InvalidSession"}'

        assert RawResponse.classify(401, body) is ResponseStatus.AUTH_EXPIRED

    def test_other_401_is_error(self) -> None:
        body = b'{"error": "bad password", "error_code": "AuthError"}'

        assert RawResponse.classify(401, body) is ResponseStatus.ERROR

    def test_401_without_json_is_error(self) -> None:
        assert RawResponse.classify(401, b"<html>") is ResponseStatus.ERROR

    def test_invalid_session_code_on_other_status_is_error(self) -> None:
        body = b'{"error_code": "InvalidSession"}'

        assert RawResponse.classify(403, body) is ResponseStatus.ERROR

    def test_json_of_non_json_body(self) -> None:
        response = RawResponse(status=ResponseStatus.ERROR, status_code=500, body=b"oops")

        assert response.json() is None


class TestHttpRequestExecutor:
    """Tests for HttpRequestExecutor against a mock transport."""

    def test_sends_method_path_headers_and_body(self, base_config: StitchAppClientConfig) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"result": 1})

        executor = make_executor(base_config, handler)
        response = executor.execute(
            Request(
                method="POST",
                path="/api/client/v2.0/app/test-app-abcde/functions/call",
                headers={"Authorization": "Bearer abc"},
                body={"name": "sum", "arguments": [1, 2]},
            )
        )

        sent = captured[0]
        assert sent.method == "POST"
        assert sent.url.path == "/api/client/v2.0/app/test-app-abcde/functions/call"
        assert sent.headers["Authorization"] == "Bearer abc"
        assert json.loads(sent.content) == {"name": "sum", "arguments": [1, 2]}
        assert response.status is ResponseStatus.OK
        assert response.json() == {"result": 1}

    def test_classifies_invalid_session(self, base_config: StitchAppClientConfig) -> None:
        executor = make_executor(
            base_config,
            lambda r: httpx.Response(401, json={"error": "expired", "error_code": "InvalidSession"}),
        )

        response = executor.execute(Request(method="GET", path="/x"))

        assert response.status is ResponseStatus.AUTH_EXPIRED
        assert response.status_code == 401

    def test_passes_query_params(self, base_config: StitchAppClientConfig) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        make_executor(base_config, handler).execute(
            Request(method="GET", path="/x", params={"stitch_request": "abc"})
        )

        assert captured[0].url.params["stitch_request"] == "abc"

    def test_connect_error_becomes_network_error(self, base_config: StitchAppClientConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NetworkError) as exc_info:
            make_executor(base_config, handler).execute(Request(method="GET", path="/x"))
        assert not isinstance(exc_info.value, TimeoutError)

    def test_timeout_becomes_timeout_error(self, base_config: StitchAppClientConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(TimeoutError):
            make_executor(base_config, handler).execute(Request(method="GET", path="/x"))

    def test_stream_request_returns_event_stream(self, base_config: StitchAppClientConfig) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=b"data: {\"a\": 1}\n\n")

        response = make_executor(base_config, handler).execute(
            Request(method="GET", path="/stream", stream=True)
        )

        assert captured[0].headers["Accept"] == "text/event-stream"
        assert response.stream is not None
        assert response.stream.next_event() == ServerSentEvent("message", '{"a": 1}')

    def test_stream_request_has_no_read_timeout(self, base_config: StitchAppClientConfig) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=b"")

        executor = make_executor(base_config, handler)
        executor.execute(Request(method="GET", path="/stream", stream=True, timeout=1.0))
        executor.execute(Request(method="GET", path="/unary", timeout=1.0))

        stream_timeout, unary_timeout = (r.extensions["timeout"] for r in captured)
        assert stream_timeout["read"] is None
        assert stream_timeout["connect"] == base_config.connect_timeout
        assert stream_timeout["write"] == 1.0
        assert unary_timeout["read"] == 1.0

    def test_failed_stream_request_is_classified(self, base_config: StitchAppClientConfig) -> None:
        executor = make_executor(
            base_config,
            lambda r: httpx.Response(404, json={"error": "no such function", "error_code": "FunctionNotFound"}),
        )

        response = executor.execute(Request(method="GET", path="/stream", stream=True))

        assert response.status is ResponseStatus.ERROR
        assert response.stream is None

    def test_close_closes_client(self, base_config: StitchAppClientConfig) -> None:
        executor = make_executor(base_config, lambda r: httpx.Response(200))

        executor.close()

        assert executor._client.is_closed


class TestEventStream:
    """Tests for server-sent event parsing."""

    def test_reads_events_in_order(self) -> None:
        stream = event_stream(b"data: one\n\ndata: two\n\n")

        assert [e.data for e in stream] == ["one", "two"]
        assert stream.is_open is False

    def test_named_events_and_comments(self) -> None:
        stream = event_stream(b": keepalive\nevent: error\ndata: {\"error\": \"x\"}\n\n")

        event = stream.next_event()

        assert event is not None
        assert event.is_error is True
        assert event.data == '{"error": "x"}'

    def test_multiline_data_is_joined(self) -> None:
        stream = event_stream(b"data: a\ndata: b\n\n")

        event = stream.next_event()

        assert event is not None
        assert event.data == "a\nb"

    def test_trailing_event_without_blank_line(self) -> None:
        stream = event_stream(b"data: last")

        event = stream.next_event()

        assert event is not None
        assert event.data == "last"
        assert stream.next_event() is None

    def test_closed_stream_yields_nothing(self) -> None:
        stream = event_stream(b"data: one\n\n")
        stream.close()

        assert stream.is_open is False
        assert stream.next_event() is None
