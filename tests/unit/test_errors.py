"""Unit tests for error classes and ErrorFactory.

Tests error hierarchy, serialization, error codes and conversion from
responses and transport exceptions.
"""

import httpx
import pytest

from fakes import invalid_session, service_error
from stitch_sdk.core.errors import ErrorFactory
from stitch_sdk.errors import (
    AuthRetryExhaustedError,
    ClosedError,
    DecodingError,
    ErrorCode,
    InvalidConfigError,
    NetworkError,
    ReauthenticationFailedError,
    StitchError,
    StitchServiceError,
    TimeoutError,
    UnauthenticatedError,
)
from stitch_sdk.transport import RawResponse, ResponseStatus


class TestErrorCode:
    """Tests for ErrorCode enum."""

    def test_error_codes_are_strings(self) -> None:
        assert ErrorCode.UNAUTHENTICATED == "AUTH_1001"
        assert ErrorCode.NETWORK_ERROR == "NET_3001"
        assert ErrorCode.DECODING_ERROR == "DEC_4001"
        assert ErrorCode.SERVICE_ERROR == "SRV_5001"
        assert ErrorCode.CLOSED == "SCH_6001"

    def test_error_code_categories(self) -> None:
        # Authentication errors start with AUTH_1
        assert ErrorCode.AUTH_RETRY_EXHAUSTED.value.startswith("AUTH_1")
        assert ErrorCode.REAUTHENTICATION_FAILED.value.startswith("AUTH_1")

        # Network errors start with NET_3
        assert ErrorCode.TIMEOUT_ERROR.value.startswith("NET_3")


class TestStitchError:
    """Tests for the base error."""

    def test_basic_error(self) -> None:
        error = StitchError("Test error", ErrorCode.UNAUTHENTICATED)

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.code == "AUTH_1001"

    def test_to_dict(self) -> None:
        error = StitchError(
            "Error",
            ErrorCode.SERVICE_ERROR,
            status_code=500,
            correlation_id="req-123",
            details={"error_code": "Internal"},
        )

        assert error.to_dict() == {
            "error": "Error",
            "code": "SRV_5001",
            "status_code": 500,
            "correlation_id": "req-123",
            "details": {"error_code": "Internal"},
        }

    def test_repr(self) -> None:
        assert repr(ClosedError()) == "ClosedError(code='SCH_6001', message='Dispatcher is closed')"


class TestErrorSubclasses:
    """Tests for specific error kinds."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (UnauthenticatedError(), "AUTH_1001"),
            (AuthRetryExhaustedError(), "AUTH_1002"),
            (ReauthenticationFailedError(), "AUTH_1003"),
            (NetworkError(), "NET_3001"),
            (TimeoutError(), "NET_3002"),
            (DecodingError(), "DEC_4001"),
            (StitchServiceError(), "SRV_5001"),
            (ClosedError(), "SCH_6001"),
            (InvalidConfigError("bad", field="x"), "VAL_2002"),
        ],
    )
    def test_codes(self, error: StitchError, code: str) -> None:
        assert isinstance(error, StitchError)
        assert error.code == code

    def test_timeout_is_network_error(self) -> None:
        error = TimeoutError(timeout_seconds=3.0)

        assert isinstance(error, NetworkError)
        assert error.status_code == 408
        assert error.details["timeout_seconds"] == 3.0

    def test_reauthentication_failure_keeps_cause(self) -> None:
        cause = StitchServiceError("revoked", error_code="InvalidSession", status_code=401)
        error = ReauthenticationFailedError(cause=cause)

        assert error.__cause__ is cause
        assert error.details["cause"] == "revoked"

    def test_service_error_carries_server_code(self) -> None:
        error = StitchServiceError("no such function", error_code="FunctionNotFound", status_code=404)

        assert error.error_code == "FunctionNotFound"
        assert error.details == {"error_code": "FunctionNotFound"}

    def test_invalid_config_field(self) -> None:
        assert InvalidConfigError("bad", field="client_app_id").details == {"field": "client_app_id"}


class TestErrorFactory:
    """Tests for ErrorFactory conversions."""

    def test_from_response_reads_server_error(self) -> None:
        error = ErrorFactory.from_response(service_error("FunctionNotFound", 404))

        assert error.message == "FunctionNotFound happened"
        assert error.error_code == "FunctionNotFound"
        assert error.status_code == 404
        assert error.correlation_id

    def test_from_response_without_json(self) -> None:
        response = RawResponse(status=ResponseStatus.ERROR, status_code=502, body=b"Bad Gateway")

        error = ErrorFactory.from_response(response, correlation_id="abc")

        assert error.message == "Request failed with status 502"
        assert error.error_code == "Unknown"
        assert error.correlation_id == "abc"

    def test_from_response_invalid_session(self) -> None:
        assert ErrorFactory.from_response(invalid_session()).error_code == "InvalidSession"

    def test_from_error_document(self) -> None:
        error = ErrorFactory.from_error_document({"error": "stream died", "error_code": "Internal"})

        assert error.message == "stream died"
        assert error.error_code == "Internal"

    def test_from_error_document_string(self) -> None:
        assert ErrorFactory.from_error_document("plain failure").message == "plain failure"

    def test_from_exception_timeout(self) -> None:
        exc = httpx.ReadTimeout("slow", request=httpx.Request("GET", "https://x"))

        assert isinstance(ErrorFactory.from_exception(exc), TimeoutError)

    def test_from_exception_connect(self) -> None:
        exc = httpx.ConnectError("refused", request=httpx.Request("GET", "https://x"))

        error = ErrorFactory.from_exception(exc)

        assert type(error) is NetworkError
        assert error.__cause__ is exc

    def test_from_exception_passes_sdk_errors_through(self) -> None:
        original = DecodingError("bad")

        error = ErrorFactory.from_exception(original, correlation_id="cid")

        assert error is original
        assert error.correlation_id == "cid"

    def test_generate_correlation_id_is_unique(self) -> None:
        assert ErrorFactory.generate_correlation_id() != ErrorFactory.generate_correlation_id()
