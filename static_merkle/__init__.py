"""
Static Merkle commitments over ordered arrays.

This package provides:
- A generic Merkle engine (StaticMerkleArray) with padding by tail duplication
- Self-contained inclusion proofs (MerkleProof)
- A pluggable hash contract with SHA-256 and MiMC/BN254 realizations
- BN254 scalar field arithmetic (via galois)
- Canonical value encoding and binary persistence

Usage:
    from static_merkle import StaticMerkleArray, Sha256Hasher, verify_value_with_proof

    sma = StaticMerkleArray([7, 1, 7, 2, 7, 3, 4, 7], Sha256Hasher())
    proof = sma.prove_item(7, occurrence=2)
    assert proof.index == 4
    assert verify_value_with_proof(7, proof)
"""

# Field arithmetic (via galois)
from .field import (
    BN254_R,
    FR,
    FR_BYTES,
    to_fr,
)
from .utils import (
    hex_to_fr,
    int_to_fr,
    fr_to_bytes32,
    bytes32_to_fr,
)

# Algebraic round function
from .mimc import (
    MIMC_ROUNDS,
    MIMC_ROUND_CONSTANTS,
    mimc_hash_2,
)

# Hash contract
from .hashers import (
    Digest,
    MerkleHasher,
    Sha256Hasher,
    MiMCBn254Hasher,
    MiMCBn254RuleHasher,
    ProductionRule,
)

# Merkle engine and proofs
from .merkle_array import StaticMerkleArray
from .proof import MerkleProof, Side, verify_value_with_proof

# Encoding, configuration, errors
from .encoding import encode_value, decode_value
from .config import HASHERS, MIMC_PARAMS, get_hasher, register_hasher
from .errors import (
    MerkleError,
    EmptyArrayError,
    IndexOutOfRangeError,
    ItemNotFoundError,
    MerkleDecodeError,
    EncodingError,
)

__version__ = "0.1.0"
__all__ = [
    # Field
    "BN254_R",
    "FR",
    "FR_BYTES",
    "to_fr",
    "hex_to_fr",
    "int_to_fr",
    "fr_to_bytes32",
    "bytes32_to_fr",
    # MiMC
    "MIMC_ROUNDS",
    "MIMC_ROUND_CONSTANTS",
    "mimc_hash_2",
    # Hashers
    "Digest",
    "MerkleHasher",
    "Sha256Hasher",
    "MiMCBn254Hasher",
    "MiMCBn254RuleHasher",
    "ProductionRule",
    # Merkle
    "StaticMerkleArray",
    "MerkleProof",
    "Side",
    "verify_value_with_proof",
    # Encoding
    "encode_value",
    "decode_value",
    # Config
    "HASHERS",
    "MIMC_PARAMS",
    "get_hasher",
    "register_hasher",
    # Errors
    "MerkleError",
    "EmptyArrayError",
    "IndexOutOfRangeError",
    "ItemNotFoundError",
    "MerkleDecodeError",
    "EncodingError",
]
