"""Centralized error factory for the Stitch SDK.

Provides consistent error creation from server responses and transport
exceptions.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import httpx

from ..errors import (
    NetworkError,
    StitchError,
    StitchServiceError,
    TimeoutError,
)

if TYPE_CHECKING:
    from ..transport import RawResponse


class ErrorFactory:
    """Centralized error creation with consistent structure.

    All errors created through this factory include:
    - Standardized error codes
    - A correlation ID for tracing
    """

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a unique correlation ID."""
        return str(uuid.uuid4())

    @staticmethod
    def from_response(
        response: RawResponse,
        *,
        correlation_id: str | None = None,
    ) -> StitchServiceError:
        """Create SDK error from a non-OK response.

        The server reports failures as ``{"error": ..., "error_code": ...}``.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()
        body: Any = response.json()

        message = f"Request failed with status {response.status_code}"
        error_code = "Unknown"
        if isinstance(body, dict):
            message = body.get("error") or message
            error_code = body.get("error_code") or error_code

        return StitchServiceError(
            message,
            error_code=error_code,
            status_code=response.status_code,
            correlation_id=correlation_id,
        )

    @staticmethod
    def from_error_document(
        document: Any,
        *,
        correlation_id: str | None = None,
    ) -> StitchServiceError:
        """Create SDK error from an error document read off a stream."""
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()
        if not isinstance(document, dict):
            return StitchServiceError(
                str(document) if document else "Stream error",
                correlation_id=correlation_id,
            )
        return StitchServiceError(
            document.get("error") or "Stream error",
            error_code=document.get("error_code") or "Unknown",
            correlation_id=correlation_id,
        )

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> StitchError:
        """Create SDK error from exception.

        Args:
            exc: Original exception.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            Appropriate StitchError subclass.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, StitchError):
            if exc.correlation_id is None:
                exc.correlation_id = correlation_id
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(
                f"Request timed out: {exc}",
                correlation_id=correlation_id,
            )

        if isinstance(exc, httpx.ConnectError):
            return NetworkError(
                f"Connection failed: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        if isinstance(exc, httpx.HTTPError):
            return NetworkError(
                f"HTTP error: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        return NetworkError(
            f"Unexpected error: {exc}",
            correlation_id=correlation_id,
            cause=exc,
        )
