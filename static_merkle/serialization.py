"""Binary persistence for static Merkle trees and proofs.

All integers are little-endian and packed with struct. Both formats open with
a magic, a u16 format version, the hasher name and the digest size, so bytes
written under one hasher are rejected when loaded with another.

Tree layout (after the common header):
    u64 n_items, then per item: u32 len + encode_value bytes
    u32 n_levels, then per level: u64 n_nodes + n_nodes * digest
    u64 n_entries, then per entry: digest + u32 n_positions + n_positions * u64

Proof layout (after the common header):
    u64 index
    u32 n_siblings, then per sibling: u8 side + digest
    digest root, digest leaf
"""

import dataclasses
import enum
import functools
import logging
import os
import stat
import struct
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .config import FORMAT_VERSION, PROOF_MAGIC, TREE_MAGIC
from .encoding import decode_value, encode_value
from .errors import EncodingError, MerkleDecodeError

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

# Raw decoded forms
TreeParts = Tuple[List[Any], List[List[bytes]], Dict[bytes, List[int]]]
ProofParts = Tuple[int, List[Tuple[bytes, int]], bytes, bytes]


# --- Byte Cursor ---

class _Writer:
    def __init__(self):
        self.parts: List[bytes] = []

    def raw(self, data: bytes) -> None:
        self.parts.append(bytes(data))

    def pack(self, fmt: str, *values: int) -> None:
        self.parts.append(struct.pack("<" + fmt, *values))

    def getvalue(self) -> bytes:
        return b"".join(self.parts)


class _Reader:
    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0

    def raw(self, n: int) -> bytes:
        end = self.pos + n
        if n < 0 or end > len(self.data):
            raise MerkleDecodeError(
                f"truncated: need {n} bytes at offset {self.pos}, have {len(self.data) - self.pos}"
            )
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def unpack(self, fmt: str) -> int:
        fmt = "<" + fmt
        return struct.unpack(fmt, self.raw(struct.calcsize(fmt)))[0]

    def finish(self) -> None:
        if self.pos != len(self.data):
            raise MerkleDecodeError(f"{len(self.data) - self.pos} trailing bytes")


# --- Common Header ---

def _write_header(w: _Writer, magic: bytes, hasher_name: str, digest_size: int) -> None:
    name = hasher_name.encode("utf-8")
    w.raw(magic)
    w.pack("H", FORMAT_VERSION)
    w.pack("H", len(name))
    w.raw(name)
    w.pack("H", digest_size)


def _read_header(r: _Reader, magic: bytes, hasher) -> int:
    """Check magic/version/hasher; return the digest size."""
    got = r.raw(len(magic))
    if got != magic:
        raise MerkleDecodeError(f"bad magic {got!r}, expected {magic!r}")
    version = r.unpack("H")
    if version != FORMAT_VERSION:
        raise MerkleDecodeError(f"unsupported format version {version}")
    name = r.raw(r.unpack("H")).decode("utf-8", errors="replace")
    if name != hasher.name:
        raise MerkleDecodeError(f"encoded with hasher {name!r}, loading with {hasher.name!r}")
    digest_size = r.unpack("H")
    if digest_size != hasher.digest_size:
        raise MerkleDecodeError(
            f"digest size {digest_size} does not match hasher {hasher.name!r} ({hasher.digest_size})"
        )
    return digest_size


def _guarded(decode):
    """Log decode failures and surface codec errors as MerkleDecodeError."""
    @functools.wraps(decode)
    def wrapper(*args, **kwargs):
        try:
            return decode(*args, **kwargs)
        except MerkleDecodeError as e:
            logger.warning("%s failed: %s", decode.__name__, e)
            raise
        except (EncodingError, UnicodeDecodeError, struct.error) as e:
            logger.warning("%s failed: %s", decode.__name__, e)
            raise MerkleDecodeError(str(e)) from e
    return wrapper


# --- Tree ---

def encode_tree(
    hasher_name: str,
    digest_size: int,
    items: Sequence[Any],
    levels: Sequence[Sequence[bytes]],
    index_map: Dict[bytes, Sequence[int]],
) -> bytes:
    """Serialize a tree's items, levels and duplicate-index map."""
    w = _Writer()
    _write_header(w, TREE_MAGIC, hasher_name, digest_size)

    w.pack("Q", len(items))
    for item in items:
        enc = encode_value(item)
        w.pack("I", len(enc))
        w.raw(enc)

    w.pack("I", len(levels))
    for level in levels:
        w.pack("Q", len(level))
        for digest in level:
            w.raw(digest)

    # Sorted for byte-identical output across runs
    w.pack("Q", len(index_map))
    for digest in sorted(index_map):
        positions = index_map[digest]
        w.raw(digest)
        w.pack("I", len(positions))
        for p in positions:
            w.pack("Q", p)

    return w.getvalue()


@_guarded
def decode_tree(
    data: bytes,
    hasher,
    item_type: Optional[type] = None,
    record_types: Iterable[type] = (),
) -> TreeParts:
    """Parse bytes from encode_tree and check their internal consistency.

    Args:
        data: Serialized tree
        hasher: Hasher the tree must have been built with
        item_type: If given, every item must be an instance of it
        record_types: Dataclass and Enum types allowed in items (item_type is
            added automatically when it is one)

    Returns:
        (items, levels, index_map)

    Raises:
        MerkleDecodeError: On any malformed or mismatched input
    """
    records = list(record_types)
    is_enum = isinstance(item_type, type) and issubclass(item_type, enum.Enum)
    if (dataclasses.is_dataclass(item_type) or is_enum) and item_type not in records:
        records.append(item_type)

    r = _Reader(data)
    size = _read_header(r, TREE_MAGIC, hasher)

    n_items = r.unpack("Q")
    if n_items == 0:
        raise MerkleDecodeError("tree has no items")
    items = []
    for i in range(n_items):
        item = decode_value(r.raw(r.unpack("I")), records)
        if item_type is not None and not isinstance(item, item_type):
            raise MerkleDecodeError(
                f"item {i} is {type(item).__name__}, expected {item_type.__name__}"
            )
        items.append(item)

    n_levels = r.unpack("I")
    levels = []
    for _ in range(n_levels):
        n_nodes = r.unpack("Q")
        levels.append([r.raw(size) for _ in range(n_nodes)])

    n_entries = r.unpack("Q")
    index_map: Dict[bytes, List[int]] = {}
    for _ in range(n_entries):
        digest = r.raw(size)
        index_map[digest] = [r.unpack("Q") for _ in range(r.unpack("I"))]
    r.finish()

    _check_tree_shape(items, levels, index_map)
    return items, levels, index_map


def _check_tree_shape(items, levels, index_map) -> None:
    if not levels or len(levels[0]) != len(items):
        raise MerkleDecodeError("leaf level does not match item count")
    for lower, upper in zip(levels, levels[1:]):
        if len(lower) == 1:
            raise MerkleDecodeError("single-node level below the top level")
        if len(upper) != (len(lower) + 1) // 2:
            raise MerkleDecodeError(
                f"level of {len(lower)} nodes followed by {len(upper)}, expected {(len(lower) + 1) // 2}"
            )
    if len(levels[-1]) != 1:
        raise MerkleDecodeError(f"top level has {len(levels[-1])} nodes, expected 1")

    expected: Dict[bytes, List[int]] = {}
    for i, leaf in enumerate(levels[0]):
        expected.setdefault(leaf, []).append(i)
    if index_map != expected:
        raise MerkleDecodeError("index map does not match leaf level")


# --- Proof ---

def encode_proof(
    hasher_name: str,
    digest_size: int,
    index: int,
    siblings: Sequence[Tuple[bytes, int]],
    root: bytes,
    leaf: bytes,
) -> bytes:
    """Serialize a proof. Sides are passed as ints (0 = left, 1 = right)."""
    w = _Writer()
    _write_header(w, PROOF_MAGIC, hasher_name, digest_size)
    w.pack("Q", index)
    w.pack("I", len(siblings))
    for digest, side in siblings:
        w.pack("B", side)
        w.raw(digest)
    w.raw(root)
    w.raw(leaf)
    return w.getvalue()


@_guarded
def decode_proof(data: bytes, hasher) -> ProofParts:
    """Parse bytes from encode_proof.

    Returns:
        (index, [(sibling, side_int), ...], root, leaf)

    Raises:
        MerkleDecodeError: On any malformed or mismatched input
    """
    r = _Reader(data)
    size = _read_header(r, PROOF_MAGIC, hasher)
    index = r.unpack("Q")
    siblings = []
    for _ in range(r.unpack("I")):
        side = r.unpack("B")
        if side not in (0, 1):
            raise MerkleDecodeError(f"invalid side byte {side}")
        siblings.append((r.raw(size), side))
    root = r.raw(size)
    leaf = r.raw(size)
    r.finish()
    return index, siblings, root, leaf


# --- Files ---

def _target_mode(path: Path) -> int:
    """Existing file's permission bits, else 0666 filtered by the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_file_atomic(path: PathLike, data: bytes) -> None:
    """Write bytes to path via a temporary sibling file and os.replace."""
    path = Path(path)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent or ".")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        # mkstemp creates 0600; give the file the mode a plain open() would
        os.chmod(tmp, _target_mode(path))
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    logger.info("wrote %d bytes to %s", len(data), path)


def read_file(path: PathLike) -> bytes:
    data = Path(path).read_bytes()
    logger.info("read %d bytes from %s", len(data), path)
    return data
