"""Request execution against the Stitch HTTP API.

The pipeline only depends on the ``RequestExecutor`` protocol; the httpx
backed implementation lives here alongside the request/response types.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from .core.errors import ErrorFactory
from .telemetry import get_logger, trace_request

if TYPE_CHECKING:
    from .config import StitchAppClientConfig

INVALID_SESSION_CODE = "InvalidSession"


class ResponseStatus(StrEnum):
    """How the pipeline should treat a response."""

    OK = "ok"
    AUTH_EXPIRED = "auth_expired"
    ERROR = "error"


@dataclass(frozen=True)
class Request:
    """A single HTTP request with credentials already attached."""

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    params: Mapping[str, str] | None = None
    timeout: float | None = None
    stream: bool = False


@dataclass(frozen=True)
class RawResponse:
    """Undecoded response with its classification."""

    status: ResponseStatus
    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    stream: EventStream | None = None

    @staticmethod
    def classify(status_code: int, body: bytes) -> ResponseStatus:
        """Classify a status code and body.

        A 401 only means an expired session when the server says so.
        """
        if 200 <= status_code < 300:
            return ResponseStatus.OK
        if status_code == 401:
            document = _parse_json(body)
            if isinstance(document, dict) and document.get("error_code") == INVALID_SESSION_CODE:
                return ResponseStatus.AUTH_EXPIRED
        return ResponseStatus.ERROR

    def json(self) -> Any:
        """Parse the body as JSON, returning ``None`` if it is not JSON."""
        return _parse_json(self.body)


def _parse_json(body: bytes) -> Any:
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


@dataclass(frozen=True)
class ServerSentEvent:
    """One event read from an event stream."""

    event: str
    data: str

    @property
    def is_error(self) -> bool:
        return self.event == "error"


class EventStream:
    """Blocking reader over a ``text/event-stream`` response."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._lines: Iterator[str] = response.iter_lines()
        self._lock = threading.Lock()
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def next_event(self) -> ServerSentEvent | None:
        """Read the next event; ``None`` once the stream is exhausted."""
        with self._lock:
            if not self._open:
                return None
            event = "message"
            data: list[str] = []
            try:
                for line in self._lines:
                    if not line:
                        if data:
                            return ServerSentEvent(event, "\n".join(data))
                        event = "message"
                        continue
                    if line.startswith(":"):
                        continue
                    name, _, value = line.partition(":")
                    value = value.removeprefix(" ")
                    if name == "event":
                        event = value
                    elif name == "data":
                        data.append(value)
            except httpx.HTTPError as e:
                self._close_locked()
                raise ErrorFactory.from_exception(e) from e

            self._close_locked()
            if data:
                return ServerSentEvent(event, "\n".join(data))
            return None

    def __iter__(self) -> Iterator[ServerSentEvent]:
        while (event := self.next_event()) is not None:
            yield event

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def _close_locked(self) -> None:
        if self._open:
            self._open = False
            self._response.close()


class RequestExecutor(Protocol):
    """Sends requests and classifies the responses."""

    def execute(self, request: Request) -> RawResponse:
        """Send a request.

        Raises:
            NetworkError: On transport failure.
        """
        ...

    def close(self) -> None:
        """Release transport resources."""
        ...


def create_http_client(config: StitchAppClientConfig) -> httpx.Client:
    """Create configured sync HTTP client.

    Args:
        config: SDK configuration.

    Returns:
        Configured httpx.Client.
    """
    return httpx.Client(
        base_url=config.base_url_str,
        timeout=httpx.Timeout(
            connect=config.connect_timeout,
            read=config.default_request_timeout,
            write=config.default_request_timeout,
            pool=config.default_request_timeout,
        ),
        headers={
            "User-Agent": "stitch-sdk/1.0.0 Python",
            "Accept": "application/json",
        },
        follow_redirects=True,
    )


class HttpRequestExecutor:
    """Request executor backed by ``httpx.Client``."""

    def __init__(
        self,
        config: StitchAppClientConfig,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            config: SDK configuration.
            client: Optional preconfigured HTTP client.
        """
        self.config = config
        self._client = client or create_http_client(config)
        self._logger = get_logger()

    def execute(self, request: Request) -> RawResponse:
        """Send a request and classify the response.

        Raises:
            NetworkError: On transport failure.
        """
        timeout = request.timeout or self.config.default_request_timeout
        headers = dict(request.headers)
        if request.stream:
            headers["Accept"] = "text/event-stream"

        with trace_request(request.method, request.path):
            try:
                http_request = self._client.build_request(
                    request.method,
                    request.path,
                    headers=headers,
                    params=request.params,
                    json=request.body,
                    timeout=self._timeout(timeout, stream=request.stream),
                )
                response = self._client.send(http_request, stream=request.stream)
            except httpx.HTTPError as e:
                self._logger.warning(
                    "Request failed",
                    method=request.method,
                    path=request.path,
                    error=str(e),
                )
                raise ErrorFactory.from_exception(e) from e

            if request.stream and response.is_success:
                return RawResponse(
                    status=ResponseStatus.OK,
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    stream=EventStream(response),
                )

            try:
                body = response.read()
            except httpx.HTTPError as e:
                raise ErrorFactory.from_exception(e) from e
            finally:
                response.close()

            return RawResponse(
                status=RawResponse.classify(response.status_code, body),
                status_code=response.status_code,
                body=body,
                headers=dict(response.headers),
            )

    def _timeout(self, timeout: float, *, stream: bool) -> httpx.Timeout:
        # Event streams may sit idle between events for any length of time.
        if stream:
            return httpx.Timeout(timeout, connect=self.config.connect_timeout, read=None)
        return httpx.Timeout(timeout, connect=self.config.connect_timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()
