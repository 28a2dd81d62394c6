"""Pluggable leaf/node hashing for static Merkle commitments.

A MerkleHasher turns an item into a leaf digest and two child digests into a
parent digest. Leaf and node hashing are domain separated so that a leaf digest
can never be reinterpreted as an internal node or vice versa.

Realizations:
    Sha256Hasher         - SHA-256 over tagged canonical bytes
    MiMCBn254Hasher      - MiMC over BN254 Fr; leaves chunk canonical bytes into Fr
    MiMCBn254RuleHasher  - as above, with ProductionRule leaves mapped field-by-field
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, List, Sequence, Tuple

from .config import MIMC_PARAMS, register_hasher
from .encoding import encode_value
from .field import FR, FR_BYTES, to_fr
from .mimc import mimc_hash_2
from .utils import bytes32_to_fr, bytes_to_field_chunks, fr_to_bytes32

logger = logging.getLogger(__name__)

# --- Type Aliases ---

Digest = bytes


# --- Contract ---

class MerkleHasher(ABC):
    """Leaf and node hashing used by StaticMerkleArray and MerkleProof.

    Subclasses set `name` (recorded in persisted trees and proofs) and
    `digest_size` (byte width of every digest they return).
    """

    name: str = ""
    digest_size: int = 0

    @abstractmethod
    def leaf(self, item: Any) -> Digest:
        """Hash a leaf value."""

    @abstractmethod
    def node(self, left: Digest, right: Digest) -> Digest:
        """Hash an internal node from its left and right child digests."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), self.name))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# --- SHA-256 ---

LEAF_TAG = b"\x00"
NODE_TAG = b"\x01"


@register_hasher
class Sha256Hasher(MerkleHasher):
    """leaf = H(0x00 || encode(item)), node = H(0x01 || left || right)."""

    name = "sha256"
    digest_size = 32

    def leaf(self, item: Any) -> Digest:
        return sha256(LEAF_TAG + encode_value(item)).digest()

    def node(self, left: Digest, right: Digest) -> Digest:
        return sha256(NODE_TAG + left + right).digest()


# --- MiMC over BN254 ---

def hash_frs(domain: int, parts: Sequence[FR]) -> FR:
    """Fold field elements through mimc_hash_2 starting from the domain seed."""
    h = to_fr(domain)
    for m in parts:
        h = mimc_hash_2(h, m)
    return h


@register_hasher
class MiMCBn254Hasher(MerkleHasher):
    """Field-native hasher for arbitrary items.

    Leaves: the canonical encoding of the item is cut into 32-byte
    little-endian blocks, each reduced modulo r, then folded from the leaf
    domain. Nodes: both digests are decoded to Fr and folded from the node
    domain. Digests are Fr elements as 32 little-endian bytes.
    """

    name = "mimc-bn254"
    digest_size = FR_BYTES

    def leaf_elements(self, item: Any) -> List[FR]:
        """Field elements absorbed for a leaf."""
        return bytes_to_field_chunks(encode_value(item))

    def leaf(self, item: Any) -> Digest:
        return fr_to_bytes32(hash_frs(MIMC_PARAMS.leaf_domain, self.leaf_elements(item)))

    def node(self, left: Digest, right: Digest) -> Digest:
        parts = [bytes32_to_fr(left), bytes32_to_fr(right)]
        return fr_to_bytes32(hash_frs(MIMC_PARAMS.node_domain, parts))


@dataclass(frozen=True)
class ProductionRule:
    """Grammar production parent -> (left_child, right_child).

    Each symbol is (is_terminal, id).
    """

    parent: Tuple[bool, int]
    left_child: Tuple[bool, int]
    right_child: Tuple[bool, int]


def rule_to_frs(rule: ProductionRule) -> List[FR]:
    """Map a rule directly to six field elements; booleans become 0/1."""
    parts = []
    for is_terminal, symbol in (rule.parent, rule.left_child, rule.right_child):
        parts.append(to_fr(1 if is_terminal else 0))
        parts.append(to_fr(symbol))
    return parts


@register_hasher
class MiMCBn254RuleHasher(MiMCBn254Hasher):
    """MiMC hasher specialized for ProductionRule leaves.

    Any other item takes the generic chunked-bytes path of MiMCBn254Hasher,
    which does not carry the per-field separation of the rule encoding. Pass
    strict=True to reject such items with TypeError instead.
    """

    name = "mimc-bn254-rule"

    def __init__(self, strict: bool = False):
        self.strict = strict

    def leaf_elements(self, item: Any) -> List[FR]:
        if isinstance(item, ProductionRule):
            return rule_to_frs(item)
        if self.strict:
            raise TypeError(f"{self.name} expects ProductionRule, got {type(item).__name__}")
        logger.debug("%s: %s leaf uses generic chunked encoding", self.name, type(item).__name__)
        return super().leaf_elements(item)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(strict={self.strict})"
