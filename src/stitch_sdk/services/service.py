"""Function calls against named Stitch services."""

from __future__ import annotations

import base64
import json
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from ..models import OperationKind, PendingOperation

if TYPE_CHECKING:
    from ..codec import Codec
    from ..core.dispatcher import TaskDispatcher
    from ..core.handle import ResultHandle
    from ..core.pipeline import AuthenticatedPipeline
    from ..routes import ServiceRoutes
    from ..transport import EventStream

T = TypeVar("T")


class StitchService:
    """Calls functions of one service, or app-level functions when unnamed."""

    def __init__(
        self,
        pipeline: AuthenticatedPipeline,
        routes: ServiceRoutes,
        name: str | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._routes = routes
        self.name = name or None

    @property
    def codec(self) -> Codec:
        return self._pipeline.codec

    @property
    def dispatcher(self) -> TaskDispatcher:
        return self._pipeline.dispatcher

    def _call_payload(self, name: str, args: Sequence[Any] | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": name,
            "arguments": self.codec.encode(list(args or [])),
        }
        if self.name:
            payload["service"] = self.name
        return payload

    def function_call_operation(
        self,
        name: str,
        args: Sequence[Any] | None = None,
        result_type: Any = Any,
        *,
        timeout: float | None = None,
    ) -> PendingOperation:
        return PendingOperation(
            kind=OperationKind.FUNCTION_CALL,
            route=self._routes.function_call_route,
            payload=self._call_payload(name, args),
            decode_to=result_type,
            timeout=timeout,
        )

    def call_function(
        self,
        name: str,
        args: Sequence[Any] | None = None,
        result_type: Any = Any,
        *,
        timeout: float | None = None,
    ) -> ResultHandle[Any]:
        """Call a function, decoding its result into ``result_type``.

        Pass ``result_type=None`` to discard the result.
        """
        return self._pipeline.submit(
            self.function_call_operation(name, args, result_type, timeout=timeout)
        )

    def stream_function(
        self,
        name: str,
        args: Sequence[Any] | None = None,
    ) -> ResultHandle[EventStream]:
        """Call a function that answers with a server-sent event stream."""
        encoded = json.dumps(self._call_payload(name, args)).encode()
        return self._pipeline.submit(
            PendingOperation(
                kind=OperationKind.STREAM,
                route=self._routes.function_call_route,
                method="GET",
                params={"stitch_request": base64.urlsafe_b64encode(encoded).decode()},
            )
        )


ServiceClientFactory = Callable[[StitchService], T]
