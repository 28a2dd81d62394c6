"""Merkle inclusion proofs.

A MerkleProof is self-contained: it holds copies of every digest it needs and
the hasher used to recombine them, so it can be verified (or persisted and
verified elsewhere) without the tree that produced it.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Tuple

from . import serialization
from .hashers import Digest, MerkleHasher


class Side(enum.Enum):
    """Position of a sibling relative to the node being authenticated."""

    LEFT = 0
    RIGHT = 1


@dataclass(frozen=True)
class MerkleProof:
    """Inclusion proof for a single array element.

    Attributes:
        index: Original array index (0-based)
        siblings: (sibling digest, side) pairs from leaf level to root
        root: Commitment root the proof claims membership in
        leaf: Leaf digest of the proven item
        hasher: Hasher used to recombine the path (not part of equality)
    """

    index: int
    siblings: Tuple[Tuple[Digest, Side], ...]
    root: Digest
    leaf: Digest
    hasher: MerkleHasher = field(compare=False, repr=False)

    @property
    def depth(self) -> int:
        """Number of combination levels in the path."""
        return len(self.siblings)

    def get_merkle_root(self) -> Digest:
        return self.root

    def get_leaf(self) -> Digest:
        return self.leaf

    def verify(self) -> bool:
        """Recompute the root from the leaf and siblings; compare to self.root.

        Never raises: a malformed path simply fails to verify.
        """
        acc = self.leaf
        try:
            for sibling, side in self.siblings:
                if side is Side.LEFT:
                    acc = self.hasher.node(sibling, acc)
                elif side is Side.RIGHT:
                    acc = self.hasher.node(acc, sibling)
                else:
                    return False
        except (ValueError, TypeError):
            return False
        return acc == self.root

    # --- Persistence ---

    def to_bytes(self) -> bytes:
        return serialization.encode_proof(
            self.hasher.name,
            self.hasher.digest_size,
            self.index,
            [(sibling, side.value) for sibling, side in self.siblings],
            self.root,
            self.leaf,
        )

    @classmethod
    def from_bytes(cls, data: bytes, hasher: MerkleHasher) -> "MerkleProof":
        """Load a proof written by to_bytes under the same hasher.

        Raises:
            MerkleDecodeError: If data is malformed or was written by another hasher
        """
        index, siblings, root, leaf = serialization.decode_proof(data, hasher)
        return cls(
            index=index,
            siblings=tuple((sibling, Side(side)) for sibling, side in siblings),
            root=root,
            leaf=leaf,
            hasher=hasher,
        )

    def save_to_file(self, path) -> None:
        serialization.write_file_atomic(path, self.to_bytes())

    @classmethod
    def load_from_file(cls, path, hasher: MerkleHasher) -> "MerkleProof":
        return cls.from_bytes(serialization.read_file(path), hasher)


def verify_value_with_proof(value: Any, proof: MerkleProof) -> bool:
    """Check that value is the proven leaf and that the proof reaches its root."""
    return proof.hasher.leaf(value) == proof.leaf and proof.verify()
