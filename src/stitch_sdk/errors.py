"""Error classes for the Stitch SDK.

Implements a structured error hierarchy with error codes and correlation IDs.
Every failure surfaced through a result handle is one of these types.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the Stitch SDK."""

    # Authentication errors (1xxx)
    UNAUTHENTICATED = "AUTH_1001"
    AUTH_RETRY_EXHAUSTED = "AUTH_1002"
    REAUTHENTICATION_FAILED = "AUTH_1003"

    # Validation errors (2xxx)
    INVALID_CONFIG = "VAL_2002"

    # Network errors (3xxx)
    NETWORK_ERROR = "NET_3001"
    TIMEOUT_ERROR = "NET_3002"

    # Decoding errors (4xxx)
    DECODING_ERROR = "DEC_4001"

    # Server errors (5xxx)
    SERVICE_ERROR = "SRV_5001"

    # Scheduler errors (6xxx)
    CLOSED = "SCH_6001"
    CANCELLED = "SCH_6002"


class StitchError(Exception):
    """Base error for the Stitch SDK with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class UnauthenticatedError(StitchError):
    """Operation requires a logged in user but there is none."""

    def __init__(
        self,
        message: str = "Must be authenticated to perform this operation",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.UNAUTHENTICATED,
            status_code=401,
            correlation_id=correlation_id,
        )


class AuthRetryExhaustedError(StitchError):
    """Session was rejected again after a successful reauthentication."""

    def __init__(
        self,
        message: str = "Session rejected after reauthentication",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.AUTH_RETRY_EXHAUSTED,
            status_code=401,
            correlation_id=correlation_id,
        )


class ReauthenticationFailedError(StitchError):
    """Refreshing the access token failed; the user has been logged out."""

    def __init__(
        self,
        message: str = "Failed to refresh access token",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.REAUTHENTICATION_FAILED,
            status_code=401,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class NetworkError(StitchError):
    """Network request failed."""

    def __init__(
        self,
        message: str = "Network request failed",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.NETWORK_ERROR,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class TimeoutError(NetworkError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message, correlation_id=correlation_id)
        self.code = ErrorCode.TIMEOUT_ERROR.value
        self.status_code = 408
        if timeout_seconds:
            self.details["timeout_seconds"] = timeout_seconds


class DecodingError(StitchError):
    """Response payload could not be decoded into the requested type."""

    def __init__(
        self,
        message: str = "Failed to decode response",
        *,
        target: str | None = None,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if target:
            details["target"] = target
        if cause:
            details["cause"] = str(cause)
        super().__init__(
            message,
            ErrorCode.DECODING_ERROR,
            correlation_id=correlation_id,
            details=details,
        )
        self.__cause__ = cause


class StitchServiceError(StitchError):
    """Server signaled an error other than an invalid session."""

    def __init__(
        self,
        message: str = "Service error",
        *,
        error_code: str = "Unknown",
        status_code: int | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.SERVICE_ERROR,
            status_code=status_code,
            correlation_id=correlation_id,
            details={"error_code": error_code},
        )
        self.error_code = error_code


class ClosedError(StitchError):
    """Dispatcher has been shut down and accepts no more work."""

    def __init__(self, message: str = "Dispatcher is closed") -> None:
        super().__init__(message, ErrorCode.CLOSED)


class CancelledError(StitchError):
    """Operation was cancelled. Reserved; operations are not cancelled mid-flight."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message, ErrorCode.CANCELLED)


class InvalidConfigError(StitchError):
    """Invalid SDK configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
