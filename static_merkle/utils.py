"""Field-encoding helpers: strings and byte arrays to and from BN254 Fr."""

from .field import BN254_R, FR, FR_BYTES


def hex_to_fr(h: str) -> FR:
    """Hex string (optionally 0x-prefixed, big-endian, <= 64 digits) to Fr."""
    s = h[2:] if h.startswith(("0x", "0X")) else h
    if len(s) % 2 == 1:
        s = "0" + s
    data = bytes.fromhex(s)
    if len(data) > FR_BYTES:
        raise ValueError(f"hex value wider than {FR_BYTES} bytes: {h!r}")
    return FR(int.from_bytes(data, "big") % BN254_R)


def int_to_fr(s: str) -> FR:
    """Decimal string to Fr, reduced modulo r."""
    if not s.isdigit():
        raise ValueError(f"invalid decimal string: {s!r}")
    return FR(int(s, 10) % BN254_R)


def fr_to_bytes32(x) -> bytes:
    """Little-endian canonical encoding of an Fr element, zero-padded to 32 bytes."""
    return (int(x) % BN254_R).to_bytes(FR_BYTES, "little")


def bytes32_to_fr(b: bytes) -> FR:
    """Inverse of fr_to_bytes32. Non-canonical inputs are reduced modulo r."""
    if len(b) != FR_BYTES:
        raise ValueError(f"expected {FR_BYTES} bytes, got {len(b)}")
    return FR(int.from_bytes(b, "little") % BN254_R)


def bytes_to_field_chunks(data: bytes) -> list:
    """Split bytes into 32-byte little-endian blocks, each reduced modulo r.

    The final block is zero-padded on the right. Empty input yields no blocks.
    """
    parts = []
    for i in range(0, len(data), FR_BYTES):
        chunk = data[i:i + FR_BYTES].ljust(FR_BYTES, b"\x00")
        parts.append(FR(int.from_bytes(chunk, "little") % BN254_R))
    return parts
