"""Authenticated request pipeline.

Every remote call goes through ``AuthenticatedPipeline.run``:

    PREPARING -> SENDING -> SUCCESS
                         -> FAILURE
                         -> AUTH_EXPIRED -> REAUTHENTICATING -> RETRYING -> SENDING

An operation is reauthenticated at most once. Concurrent operations that
find the session expired share a single refresh through ``SingleFlight``.
A failed refresh clears the credentials, logging the user out everywhere.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ..errors import (
    AuthRetryExhaustedError,
    ReauthenticationFailedError,
    StitchError,
    UnauthenticatedError,
)
from ..models import Credentials, OperationKind, PendingOperation
from ..telemetry import get_logger, trace_operation
from ..transport import Request, RequestExecutor, ResponseStatus
from .errors import ErrorFactory
from .single_flight import SingleFlight

if TYPE_CHECKING:
    from ..codec import Codec
    from .credentials import CredentialState
    from .dispatcher import TaskDispatcher
    from .handle import ResultHandle

Reauthenticator = Callable[[Credentials], Credentials]


class PipelineState(StrEnum):
    """States of one pipeline invocation."""

    PREPARING = "preparing"
    SENDING = "sending"
    AUTH_EXPIRED = "auth_expired"
    REAUTHENTICATING = "reauthenticating"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class RetryLedger:
    """Per-invocation record of whether reauthentication was attempted."""

    attempted: bool = False

    def mark(self) -> None:
        self.attempted = True


class AuthenticatedPipeline:
    """Attaches credentials, sends, and transparently reauthenticates once."""

    def __init__(
        self,
        executor: RequestExecutor,
        credentials: CredentialState,
        reauthenticator: Reauthenticator,
        codec: Codec,
        dispatcher: TaskDispatcher,
        *,
        default_timeout: float | None = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            executor: Sends requests and classifies responses.
            credentials: Shared credential state.
            reauthenticator: Exchanges stored refresh material for fresh
                credentials. Raises on failure.
            codec: Decodes response payloads.
            dispatcher: Runs invocations off the calling thread.
            default_timeout: Advisory timeout handed to the executor.
        """
        self._executor = executor
        self._credentials = credentials
        self._reauthenticator = reauthenticator
        self._codec = codec
        self._dispatcher = dispatcher
        self._default_timeout = default_timeout
        self._refresh_flight: SingleFlight[Credentials] = SingleFlight()
        self._logger = get_logger()

    @property
    def credentials(self) -> CredentialState:
        return self._credentials

    @property
    def codec(self) -> Codec:
        return self._codec

    @property
    def dispatcher(self) -> TaskDispatcher:
        return self._dispatcher

    @property
    def refresh_flight(self) -> SingleFlight[Credentials]:
        return self._refresh_flight

    def submit(self, operation: PendingOperation) -> ResultHandle[Any]:
        """Schedule an operation and return a handle to its outcome.

        Raises:
            ClosedError: If the dispatcher has been closed.
        """
        return self._dispatcher.submit(lambda: self.run(operation))

    def run(self, operation: PendingOperation) -> Any:
        """Run an operation to completion on the current thread."""
        log = self._logger.bind(operation=operation.kind.value, route=operation.route)
        with trace_operation(
            "stitch.pipeline",
            attributes={
                "stitch.operation": operation.kind.value,
                "stitch.route": operation.route,
            },
        ):
            try:
                result = self._run(operation, log)
            except StitchError as e:
                log.debug("Pipeline state", state=PipelineState.FAILURE, code=e.code)
                raise
            log.debug("Pipeline state", state=PipelineState.SUCCESS)
            return result

    def _run(self, operation: PendingOperation, log: Any) -> Any:
        ledger = RetryLedger()

        log.debug("Pipeline state", state=PipelineState.PREPARING)
        credentials = self._credentials.current()
        if credentials is None and operation.requires_auth:
            raise UnauthenticatedError()

        while True:
            log.debug("Pipeline state", state=PipelineState.SENDING)
            response = self._executor.execute(self._build_request(operation, credentials))

            if (
                response.status is ResponseStatus.AUTH_EXPIRED
                and operation.requires_auth
                and not operation.use_refresh_token
            ):
                log.debug("Pipeline state", state=PipelineState.AUTH_EXPIRED)
                if ledger.attempted:
                    raise AuthRetryExhaustedError()
                ledger.mark()

                log.debug("Pipeline state", state=PipelineState.REAUTHENTICATING)
                credentials = self.reauthenticate(credentials)

                log.debug("Pipeline state", state=PipelineState.RETRYING)
                continue

            if response.status is not ResponseStatus.OK:
                raise ErrorFactory.from_response(response)

            if operation.kind is OperationKind.STREAM:
                return response.stream
            return self._codec.decode(response.body, operation.decode_to)

    def _build_request(
        self,
        operation: PendingOperation,
        credentials: Credentials | None,
    ) -> Request:
        headers: dict[str, str] = {}
        if credentials is not None and operation.requires_auth:
            token = (
                credentials.refresh_token
                if operation.use_refresh_token
                else credentials.access_token
            )
            headers["Authorization"] = f"Bearer {token}"
        return Request(
            method=operation.method,
            path=operation.route,
            headers=headers,
            body=operation.payload,
            params=operation.params,
            timeout=operation.timeout or self._default_timeout,
            stream=operation.kind is OperationKind.STREAM,
        )

    def reauthenticate(self, stale: Credentials | None) -> Credentials:
        """Obtain fresh credentials, joining any refresh already running.

        Args:
            stale: The credentials that were rejected. If the current
                credentials already differ, they are returned without a
                new refresh.

        Raises:
            ReauthenticationFailedError: If the refresh failed, or the user
                was logged out or replaced by another user meanwhile.
        """
        with trace_operation("stitch.auth.refresh"):
            refreshed = self._refresh_flight.do(lambda: self._refresh_if_stale(stale))
        # A coalesced refresh may hand back another user's session.
        if stale is not None and refreshed.user_id != stale.user_id:
            raise ReauthenticationFailedError(
                "Session changed before the operation could be retried"
            )
        return refreshed

    def _refresh_if_stale(self, stale: Credentials | None) -> Credentials:
        current = self._credentials.current()
        if current is None:
            raise ReauthenticationFailedError("Logged out before session could be refreshed")
        if stale is not None and (
            current.user_id != stale.user_id
            or current.access_token != stale.access_token
        ):
            return current

        self._logger.info("Refreshing access token", user_id=current.user_id)
        try:
            refreshed = self._reauthenticator(current)
        except Exception as e:
            self._logger.warning(
                "Access token refresh failed, logging out",
                user_id=current.user_id,
                error=str(e),
            )
            self._credentials.clear()
            raise ReauthenticationFailedError(cause=e) from e

        self._credentials.replace(refreshed)
        self._logger.info("Access token refreshed", user_id=refreshed.user_id)
        return refreshed
