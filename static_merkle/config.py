"""Fixed parameters, persisted-format constants and the hasher registry."""

from dataclasses import dataclass
from typing import Dict, Type

# --- Persisted Format ---

TREE_MAGIC = b"SMA1"
PROOF_MAGIC = b"SMP1"
FORMAT_VERSION = 1


# --- MiMC Parameters ---

@dataclass(frozen=True)
class MiMCParameters:
    """Security parameters of the MiMC-BN254 Merkle hasher.

    These are fixed: changing any of them changes every digest.

    Attributes:
        rounds: Number of x <- (x + c_i)^exponent rounds
        exponent: S-box exponent, smallest e with gcd(e, r - 1) == 1
        leaf_domain: Fold seed for leaf hashing
        node_domain: Fold seed for internal-node hashing
        constant_seed: Prefix hashed with the round index to derive c_i
    """

    rounds: int = 110
    exponent: int = 5
    leaf_domain: int = 0xA5
    node_domain: int = 0x5A
    constant_seed: bytes = b"static_merkle/mimc-bn254/"


MIMC_PARAMS = MiMCParameters()


# --- Hasher Registry ---

HASHERS: Dict[str, Type] = {}


def register_hasher(cls: Type) -> Type:
    """Class decorator adding a MerkleHasher subclass to HASHERS under cls.name."""
    if cls.name in HASHERS and HASHERS[cls.name] is not cls:
        raise ValueError(f"hasher name {cls.name!r} already registered")
    HASHERS[cls.name] = cls
    return cls


def get_hasher(name: str):
    """Instantiate a registered hasher by name."""
    try:
        cls = HASHERS[name]
    except KeyError:
        raise KeyError(f"unknown hasher {name!r}; known: {sorted(HASHERS)}") from None
    return cls()
