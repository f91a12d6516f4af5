"""Change streams over watched documents."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ...core.errors import ErrorFactory
from ...errors import DecodingError

if TYPE_CHECKING:
    from ...codec import Codec
    from ...core.dispatcher import TaskDispatcher
    from ...core.handle import ResultHandle
    from ...transport import EventStream, ServerSentEvent

EventT = TypeVar("EventT")


class ChangeStream(Generic[EventT]):
    """Decoded events from an open event stream.

    ``next_event`` reads on a worker thread; iterating blocks the caller.
    """

    def __init__(
        self,
        stream: EventStream,
        event_type: Any,
        codec: Codec,
        dispatcher: TaskDispatcher,
    ) -> None:
        self._stream = stream
        self._event_type = event_type
        self._codec = codec
        self._dispatcher = dispatcher

    @property
    def is_open(self) -> bool:
        return self._stream.is_open

    def next_event(self) -> ResultHandle[EventT | None]:
        """Read the next event; resolves to ``None`` once the stream ends."""
        return self._dispatcher.submit(self._read)

    def _read(self) -> EventT | None:
        event = self._stream.next_event()
        if event is None:
            return None
        return self._decode(event)

    def _decode(self, event: ServerSentEvent) -> EventT:
        try:
            document = json.loads(event.data)
        except ValueError as e:
            if event.is_error:
                raise ErrorFactory.from_error_document(event.data) from e
            raise DecodingError("Change event is not valid JSON", cause=e) from e
        if event.is_error:
            raise ErrorFactory.from_error_document(document)
        return self._codec.decode_value(document, self._event_type)

    def __iter__(self) -> Iterator[EventT]:
        while (event := self._read()) is not None:
            yield event

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> ChangeStream[EventT]:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
