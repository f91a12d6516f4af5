"""JSON codec keyed by target type.

Decoding validates against a cached pydantic ``TypeAdapter`` for the
requested type, so plain types, generics and models all work.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from .errors import DecodingError


class Codec(Protocol):
    """Encodes outgoing values and decodes response payloads."""

    def encode(self, value: Any) -> Any:
        """Convert a value to JSON-compatible data."""
        ...

    def decode(self, payload: bytes, target: Any) -> Any:
        """Decode a raw JSON payload into ``target``.

        Raises:
            DecodingError: If the payload does not fit ``target``.
        """
        ...

    def decode_value(self, value: Any, target: Any) -> Any:
        """Decode already parsed JSON data into ``target``."""
        ...


@lru_cache(maxsize=256)
def _adapter_for(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def _target_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)


class JsonCodec:
    """Codec for JSON bodies using pydantic validation."""

    def encode(self, value: Any) -> Any:
        return to_jsonable_python(value, by_alias=True)

    def decode(self, payload: bytes, target: Any) -> Any:
        if target is None:
            return None
        try:
            adapter = _adapter_for(target)
            if not payload:
                return adapter.validate_python(None)
            return adapter.validate_json(payload)
        except ValidationError as e:
            raise DecodingError(
                f"Response does not match {_target_name(target)}",
                target=_target_name(target),
                cause=e,
            ) from e

    def decode_value(self, value: Any, target: Any) -> Any:
        if target is None:
            return None
        try:
            return _adapter_for(target).validate_python(value)
        except ValidationError as e:
            raise DecodingError(
                f"Value does not match {_target_name(target)}",
                target=_target_name(target),
                cause=e,
            ) from e
