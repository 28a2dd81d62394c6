"""Tests for the canonical value encoding."""

import dataclasses
import enum
from dataclasses import dataclass

import pytest

from static_merkle import EncodingError, ProductionRule, decode_value, encode_value


class Color(enum.Enum):
    RED = 1
    BLUE = "blue"


@dataclass(frozen=True)
class Point:
    x: int
    y: int


class TestCanonical:
    def test_dict_order_independent(self):
        assert encode_value({"a": 1, "b": 2}) == encode_value({"b": 2, "a": 1})

    def test_set_order_independent(self):
        assert encode_value({3, 1, 2}) == encode_value({2, 3, 1})

    def test_types_distinguished(self):
        encodings = {
            encode_value(v)
            for v in (0, False, None, 0.0, "", b"", [], (), {}, set(), frozenset())
        }
        assert len(encodings) == 11

    def test_list_vs_tuple(self):
        assert encode_value([1, 2]) != encode_value((1, 2))

    def test_bytearray_as_bytes(self):
        assert encode_value(bytearray(b"ab")) == encode_value(b"ab")

    def test_enum_distinct_from_value(self):
        """An enum member and its bare value are different leaves."""
        assert encode_value(Color.RED) != encode_value(1)
        assert encode_value(Color.BLUE) != encode_value("blue")
        assert encode_value(Color.RED) != encode_value(Color.BLUE)

    def test_same_qualname_different_module(self):
        """Records are named by module and qualname, so same-named classes differ."""
        Other = dataclasses.make_dataclass("Point", [("x", int), ("y", int)], frozen=True)
        Other.__module__ = "elsewhere.shapes"
        assert Other.__qualname__ == Point.__qualname__
        assert encode_value(Other(1, 2)) != encode_value(Point(1, 2))

    def test_int_layout(self):
        assert encode_value(1) == b"\x03\x01\x00\x00\x00\x01"
        assert encode_value(-1) == b"\x03\x01\x00\x00\x00\xff"
        assert encode_value(255) == b"\x03\x02\x00\x00\x00\xff\x00"

    def test_unsupported(self):
        with pytest.raises(EncodingError):
            encode_value(object())
        with pytest.raises(TypeError):
            encode_value([1, {2: object()}])


class TestDecode:
    @pytest.mark.parametrize("value", [
        None, True, False, 0, -1, 2**200, -(2**70), 1.5, "héllo", b"\x00\xff",
        [1, [2, [3]]], (1, "a"), {"k": [1, 2], 3: None}, {1, 2}, frozenset({"a"}),
    ])
    def test_round_trip(self, value):
        assert decode_value(encode_value(value)) == value

    def test_tuple_stays_tuple(self):
        assert isinstance(decode_value(encode_value((1, 2))), tuple)

    def test_record_round_trip(self):
        rule = ProductionRule(parent=(True, 1), left_child=(False, 2), right_child=(True, 3))
        assert decode_value(encode_value(rule), [ProductionRule]) == rule
        assert decode_value(encode_value([Point(1, 2)]), [Point]) == [Point(1, 2)]

    def test_record_requires_type(self):
        with pytest.raises(EncodingError):
            decode_value(encode_value(Point(1, 2)))

    def test_record_type_resolved_by_module(self):
        Other = dataclasses.make_dataclass("Point", [("x", int), ("y", int)], frozen=True)
        Other.__module__ = "elsewhere.shapes"
        data = encode_value(Other(1, 2))
        with pytest.raises(EncodingError):
            decode_value(data, [Point])
        decoded = decode_value(data, [Point, Other])
        assert type(decoded) is Other
        assert decode_value(encode_value(Point(1, 2)), [Point, Other]) == Point(1, 2)

    def test_enum_round_trip(self):
        value = [Color.RED, Color.BLUE]
        decoded = decode_value(encode_value(value), [Color])
        assert decoded == value
        assert decoded[0] is Color.RED

    def test_enum_requires_type(self):
        with pytest.raises(EncodingError):
            decode_value(encode_value(Color.RED))
        with pytest.raises(EncodingError):
            decode_value(encode_value(Color.RED), [Point])

    def test_enum_unknown_member(self):
        data = encode_value(Color.RED).replace(encode_value(1), encode_value(2))
        with pytest.raises(EncodingError):
            decode_value(data, [Color])

    def test_truncated(self):
        data = encode_value("hello world")
        with pytest.raises(EncodingError):
            decode_value(data[:-1])

    def test_trailing_bytes(self):
        with pytest.raises(EncodingError):
            decode_value(encode_value(1) + b"\x00")

    def test_unknown_tag(self):
        with pytest.raises(EncodingError):
            decode_value(b"\xee")

    def test_unhashable_key(self):
        # dict with one entry whose key is a list
        data = b"\x09\x01\x00\x00\x00" + encode_value([1]) + encode_value(2)
        with pytest.raises(EncodingError):
            decode_value(data)
