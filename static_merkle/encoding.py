"""Canonical, type-tagged binary encoding of leaf values.

Leaf hashing needs a byte encoding that is identical for value-equal inputs.
Every value is written as a one-byte tag followed by a tag-specific body;
variable-size bodies carry a little-endian u32 length prefix. Unordered
containers (dict, set, frozenset) are written in sorted order of their encoded
entries, so insertion order never reaches the digest.

Dataclass instances are written as records: the class type name
(module-qualified) plus the field values in declaration order. Enum members
are written as the enum type name plus the encoded member value. Decoding
either requires the class to be passed in record_types.
"""

import dataclasses
import enum
import struct
from typing import Any, Dict, Iterable, List, Tuple

from .errors import EncodingError

# --- Tags ---

TAG_NONE = 0x00
TAG_FALSE = 0x01
TAG_TRUE = 0x02
TAG_INT = 0x03
TAG_FLOAT = 0x04
TAG_STR = 0x05
TAG_BYTES = 0x06
TAG_LIST = 0x07
TAG_TUPLE = 0x08
TAG_DICT = 0x09
TAG_SET = 0x0A
TAG_FROZENSET = 0x0B
TAG_RECORD = 0x0C
TAG_ENUM = 0x0D


# --- Encoding ---

def type_name(cls: type) -> str:
    """Module-qualified name identifying a record or enum type."""
    return f"{cls.__module__}.{cls.__qualname__}"


def _u32(n: int) -> bytes:
    return struct.pack("<I", n)


def _encode_sized(tag: int, body: bytes) -> bytes:
    return bytes([tag]) + _u32(len(body)) + body


def _encode_seq(tag: int, items: Iterable[bytes]) -> bytes:
    items = list(items)
    return bytes([tag]) + _u32(len(items)) + b"".join(items)


def encode_value(value: Any) -> bytes:
    """Encode a value canonically.

    Raises:
        EncodingError: If the value (or anything nested in it) is unsupported
    """
    out: List[bytes] = []
    _encode_into(value, out)
    return b"".join(out)


def _encode_into(value: Any, out: List[bytes]) -> None:
    if value is None:
        out.append(bytes([TAG_NONE]))
    elif isinstance(value, bool):
        out.append(bytes([TAG_TRUE if value else TAG_FALSE]))
    elif isinstance(value, enum.Enum):
        name = type_name(type(value)).encode("utf-8")
        out.append(bytes([TAG_ENUM]) + _u32(len(name)) + name)
        _encode_into(value.value, out)
    elif isinstance(value, int):
        n_bytes = (value.bit_length() + 8) // 8
        out.append(_encode_sized(TAG_INT, value.to_bytes(n_bytes, "little", signed=True)))
    elif isinstance(value, float):
        out.append(bytes([TAG_FLOAT]) + struct.pack("<d", value))
    elif isinstance(value, str):
        out.append(_encode_sized(TAG_STR, value.encode("utf-8")))
    elif isinstance(value, (bytes, bytearray, memoryview)):
        out.append(_encode_sized(TAG_BYTES, bytes(value)))
    elif isinstance(value, list):
        out.append(_encode_seq(TAG_LIST, (encode_value(v) for v in value)))
    elif isinstance(value, tuple):
        out.append(_encode_seq(TAG_TUPLE, (encode_value(v) for v in value)))
    elif isinstance(value, dict):
        entries = sorted(encode_value(k) + encode_value(v) for k, v in value.items())
        out.append(_encode_seq(TAG_DICT, entries))
    elif isinstance(value, frozenset):
        out.append(_encode_seq(TAG_FROZENSET, sorted(encode_value(v) for v in value)))
    elif isinstance(value, set):
        out.append(_encode_seq(TAG_SET, sorted(encode_value(v) for v in value)))
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        name = type_name(type(value)).encode("utf-8")
        fields = [encode_value(getattr(value, f.name)) for f in dataclasses.fields(value)]
        out.append(bytes([TAG_RECORD]) + _u32(len(name)) + name + _u32(len(fields)))
        out.extend(fields)
    else:
        raise EncodingError(f"cannot canonically encode value of type {type(value).__name__}")


# --- Decoding ---

class _Reader:
    """Cursor over an immutable byte buffer."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, n: int) -> bytes:
        end = self.pos + n
        if end > len(self.data):
            raise EncodingError(
                f"truncated input: need {n} bytes at offset {self.pos}, have {len(self.data) - self.pos}"
            )
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]


def decode_value(data: bytes, record_types: Iterable[type] = ()) -> Any:
    """Decode bytes produced by encode_value.

    Args:
        data: Encoded value; must be consumed exactly
        record_types: Dataclass and Enum types allowed to appear as records

    Raises:
        EncodingError: On malformed input, trailing bytes or unknown records
    """
    registry = {type_name(cls): cls for cls in record_types}
    reader = _Reader(bytes(data))
    value = _decode(reader, registry)
    if reader.pos != len(reader.data):
        raise EncodingError(f"{len(reader.data) - reader.pos} trailing bytes after value")
    return value


def _decode_items(reader: _Reader, registry: Dict[str, type]) -> List[Any]:
    count = reader.u32()
    return [_decode(reader, registry) for _ in range(count)]


def _decode(reader: _Reader, registry: Dict[str, type]) -> Any:
    tag = reader.u8()
    if tag == TAG_NONE:
        return None
    if tag == TAG_FALSE:
        return False
    if tag == TAG_TRUE:
        return True
    if tag == TAG_INT:
        return int.from_bytes(reader.take(reader.u32()), "little", signed=True)
    if tag == TAG_FLOAT:
        return struct.unpack("<d", reader.take(8))[0]
    if tag == TAG_STR:
        raw = reader.take(reader.u32())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"invalid utf-8 in string: {e}") from e
    if tag == TAG_BYTES:
        return reader.take(reader.u32())
    if tag == TAG_LIST:
        return _decode_items(reader, registry)
    if tag == TAG_TUPLE:
        return tuple(_decode_items(reader, registry))
    if tag == TAG_DICT:
        count = reader.u32()
        result = {}
        for _ in range(count):
            key = _decode(reader, registry)
            value = _decode(reader, registry)
            try:
                result[key] = value
            except TypeError as e:
                raise EncodingError(f"unhashable dict key: {e}") from e
        return result
    if tag in (TAG_SET, TAG_FROZENSET):
        items = _decode_items(reader, registry)
        try:
            return set(items) if tag == TAG_SET else frozenset(items)
        except TypeError as e:
            raise EncodingError(f"unhashable set element: {e}") from e
    if tag == TAG_RECORD:
        name = reader.take(reader.u32()).decode("utf-8", errors="replace")
        cls = registry.get(name)
        if cls is None:
            raise EncodingError(f"record type {name!r} not in record_types")
        fields: Tuple[Any, ...] = tuple(_decode_items(reader, registry))
        try:
            return cls(*fields)
        except TypeError as e:
            raise EncodingError(f"cannot rebuild {name}: {e}") from e
    if tag == TAG_ENUM:
        name = reader.take(reader.u32()).decode("utf-8", errors="replace")
        cls = registry.get(name)
        if cls is None or not issubclass(cls, enum.Enum):
            raise EncodingError(f"enum type {name!r} not in record_types")
        value = _decode(reader, registry)
        try:
            return cls(value)
        except (ValueError, TypeError) as e:
            raise EncodingError(f"cannot rebuild {name}: {e}") from e
    raise EncodingError(f"unknown tag 0x{tag:02x} at offset {reader.pos - 1}")
