"""Unit tests for JsonCodec."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import BaseModel

from stitch_sdk.codec import JsonCodec
from stitch_sdk.errors import DecodingError


class Item(BaseModel):
    name: str
    qty: int = 0


class TestJsonCodec:
    """Tests for decoding by target type."""

    def test_decode_plain_types(self, codec: JsonCodec) -> None:
        assert codec.decode(b"3", int) == 3
        assert codec.decode(b'"x"', str) == "x"
        assert codec.decode(b"[1, 2]", list[int]) == [1, 2]

    def test_decode_any(self, codec: JsonCodec) -> None:
        assert codec.decode(b'{"a": [1, null]}', Any) == {"a": [1, None]}

    def test_decode_model(self, codec: JsonCodec) -> None:
        item = codec.decode(b'{"name": "lamp", "qty": 2}', Item)

        assert item == Item(name="lamp", qty=2)

    def test_decode_none_target_discards_body(self, codec: JsonCodec) -> None:
        assert codec.decode(b'{"anything": true}', None) is None

    def test_empty_body_decodes_as_null(self, codec: JsonCodec) -> None:
        assert codec.decode(b"", Item | None) is None

    def test_mismatch_raises_decoding_error(self, codec: JsonCodec) -> None:
        with pytest.raises(DecodingError) as exc_info:
            codec.decode(b'{"qty": 1}', Item)

        assert exc_info.value.details["target"] == "Item"
        assert exc_info.value.code == "DEC_4001"

    def test_invalid_json_raises_decoding_error(self, codec: JsonCodec) -> None:
        with pytest.raises(DecodingError):
            codec.decode(b"{not json", dict)

    def test_decode_value(self, codec: JsonCodec) -> None:
        assert codec.decode_value({"name": "desk"}, Item) == Item(name="desk")
        with pytest.raises(DecodingError):
            codec.decode_value("nope", int)

    def test_encode_models_by_alias(self, codec: JsonCodec) -> None:
        assert codec.encode({"item": Item(name="a")}) == {"item": {"name": "a", "qty": 0}}
