"""Static array Merkle commitment with membership proofs by index or by value."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from . import serialization
from .errors import (
    EmptyArrayError,
    EncodingError,
    IndexOutOfRangeError,
    ItemNotFoundError,
    MerkleDecodeError,
)
from .hashers import Digest, MerkleHasher
from .proof import MerkleProof, Side

logger = logging.getLogger(__name__)

# --- Type Aliases ---

Level = Tuple[Digest, ...]


# --- Tree Construction ---

def build_levels(leaves: Sequence[Digest], hasher: MerkleHasher) -> List[Level]:
    """Combine leaves pairwise, level by level, up to a single root.

    An odd-length level is paired as if its last node were repeated; the stored
    level keeps its raw length, so level k+1 has ceil(len(level k) / 2) nodes.

    Returns:
        Levels bottom-up: levels[0] is the leaves, levels[-1] is (root,)
    """
    levels: List[Level] = [tuple(leaves)]
    cur = list(leaves)
    while len(cur) > 1:
        if len(cur) % 2 == 1:
            cur.append(cur[-1])
        cur = [hasher.node(cur[i], cur[i + 1]) for i in range(0, len(cur), 2)]
        levels.append(tuple(cur))
    return levels


class StaticMerkleArray:
    """Immutable Merkle commitment to an ordered array of items.

    - Built once from a non-empty sequence; never modified afterwards.
    - Supports membership proofs by index or by value (duplicates allowed).
    - Serializable to bytes or to a file.

    Example:
        sma = StaticMerkleArray([7, 1, 7, 2], Sha256Hasher())
        proof = sma.prove_item(7, occurrence=1)
        assert verify_value_with_proof(7, proof)
    """

    def __init__(self, items: Iterable[Any], hasher: MerkleHasher):
        """Hash every item into a leaf and build all levels up to the root.

        Raises:
            EmptyArrayError: If items is empty
        """
        items = tuple(items)
        if not items:
            raise EmptyArrayError("array must be non-empty")

        leaves = [hasher.leaf(item) for item in items]
        levels = build_levels(leaves, hasher)

        index_map: Dict[Digest, List[int]] = {}
        for i, leaf in enumerate(leaves):
            index_map.setdefault(leaf, []).append(i)

        self._init(items, levels, index_map, hasher)
        logger.debug(
            "built %s tree: %d items, height %d, %d distinct leaves",
            hasher.name, len(items), self.height, len(index_map),
        )

    def _init(self, items, levels, index_map, hasher) -> None:
        self._items: Tuple[Any, ...] = tuple(items)
        self._levels: Tuple[Level, ...] = tuple(tuple(level) for level in levels)
        self._index_map: Dict[Digest, Tuple[int, ...]] = {
            digest: tuple(positions) for digest, positions in index_map.items()
        }
        self._hasher = hasher

    # --- Accessors ---

    @property
    def hasher(self) -> MerkleHasher:
        return self._hasher

    @property
    def items(self) -> Tuple[Any, ...]:
        return self._items

    @property
    def levels(self) -> Tuple[Level, ...]:
        """Bottom-up levels; levels[0] = leaves, levels[-1] = (root,)."""
        return self._levels

    @property
    def root(self) -> Digest:
        """Root commitment."""
        return self._levels[-1][0]

    @property
    def height(self) -> int:
        """Number of combination levels (proof length)."""
        return len(self._levels) - 1

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def leaf_digest(self, index: int) -> Digest:
        self._check_index(index)
        return self._levels[0][index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StaticMerkleArray):
            return NotImplemented
        return (
            self._hasher.name == other._hasher.name
            and self._items == other._items
            and self._levels == other._levels
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"StaticMerkleArray(len={len(self)}, hasher={self._hasher.name!r}, root={self.root.hex()})"

    # --- Proofs ---

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise IndexOutOfRangeError(index, len(self._items))

    def prove_index(self, index: int) -> MerkleProof:
        """Build a membership proof for the item at index.

        At each level the sibling is the paired position, clamped to the last
        node of the raw level: a self-duplicated tail node is its own sibling.

        Raises:
            IndexOutOfRangeError: If index is not in [0, len)
        """
        self._check_index(index)
        siblings: List[Tuple[Digest, Side]] = []
        i = index

        for level_nodes in self._levels[:-1]:
            is_right = i % 2 == 1
            sib_idx = min(i - 1 if is_right else i + 1, len(level_nodes) - 1)
            siblings.append((level_nodes[sib_idx], Side.LEFT if is_right else Side.RIGHT))
            i //= 2

        logger.debug("proof for index %d: %d siblings", index, len(siblings))
        return MerkleProof(
            index=index,
            siblings=tuple(siblings),
            root=self.root,
            leaf=self._levels[0][index],
            hasher=self._hasher,
        )

    def positions_of(self, item: Any) -> List[int]:
        """All positions whose leaf digest equals the digest of item (ascending).

        A value the codec cannot encode is never among the items, so it has no
        positions.
        """
        try:
            digest = self._hasher.leaf(item)
        except EncodingError:
            return []
        return list(self._index_map.get(digest, ()))

    def prove_item(self, item: Any, occurrence: int = 0) -> MerkleProof:
        """Build a proof for item by value.

        Args:
            item: Value to prove
            occurrence: Which occurrence to prove when item appears more than
                once (0 = lowest index)

        Raises:
            ItemNotFoundError: If item is absent or occurrence is out of range
        """
        positions = self.positions_of(item)
        if not positions:
            raise ItemNotFoundError("item not found in array")
        if not 0 <= occurrence < len(positions):
            raise ItemNotFoundError(
                f"occurrence {occurrence} requested, item occurs {len(positions)} time(s)"
            )
        return self.prove_index(positions[occurrence])

    # --- Persistence ---

    def to_bytes(self) -> bytes:
        """Serialize items, levels and the duplicate-index map."""
        return serialization.encode_tree(
            self._hasher.name,
            self._hasher.digest_size,
            self._items,
            self._levels,
            self._index_map,
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        hasher: MerkleHasher,
        item_type: Optional[type] = None,
        record_types: Iterable[type] = (),
        verify: bool = True,
    ) -> "StaticMerkleArray":
        """Rebuild a tree from to_bytes output.

        Args:
            data: Serialized tree
            hasher: Hasher the tree was built with
            item_type: If given, every item must be an instance of it
            record_types: Dataclass and Enum types that may appear among the items
            verify: Recompute leaves and root and require them to match

        Raises:
            MerkleDecodeError: On malformed data, hasher or type mismatch, or
                (with verify) digests that do not match the items
        """
        items, levels, index_map = serialization.decode_tree(data, hasher, item_type, record_types)
        if verify:
            leaves = tuple(hasher.leaf(item) for item in items)
            if leaves != tuple(levels[0]):
                logger.warning("decoded leaf level does not match items")
                raise MerkleDecodeError("leaf digests do not match items")
            if build_levels(leaves, hasher) != [tuple(level) for level in levels]:
                logger.warning("decoded internal levels do not match leaves")
                raise MerkleDecodeError("internal nodes do not match leaves")

        tree = cls.__new__(cls)
        tree._init(items, levels, index_map, hasher)
        return tree

    def save_to_file(self, path) -> None:
        """Save the full structure to a file (binary encoding)."""
        serialization.write_file_atomic(path, self.to_bytes())

    @classmethod
    def load_from_file(
        cls,
        path,
        hasher: MerkleHasher,
        item_type: Optional[type] = None,
        record_types: Iterable[type] = (),
        verify: bool = True,
    ) -> "StaticMerkleArray":
        """Load a structure previously saved with save_to_file."""
        return cls.from_bytes(
            serialization.read_file(path), hasher, item_type, record_types, verify
        )
