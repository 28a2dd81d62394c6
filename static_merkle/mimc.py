"""
MiMC two-to-one compression over the BN254 scalar field.

Each round computes x <- (x + c_i)^5 mod r, starting from x = a + b. The
exponent 5 is the smallest e with gcd(e, r - 1) == 1, so x -> x^5 is a
permutation of Fr.

Round arithmetic is done on plain ints modulo r; Fr elements are converted at
the function boundary.
"""

from hashlib import sha256
from typing import Tuple

from .config import MIMC_PARAMS
from .field import BN254_R, FR

MIMC_ROUNDS = MIMC_PARAMS.rounds
MIMC_EXPONENT = MIMC_PARAMS.exponent


def _derive_round_constants(seed: bytes, rounds: int) -> Tuple[int, ...]:
    """c_i = SHA-256(seed || i as u32 big-endian) interpreted big-endian, mod r."""
    return tuple(
        int.from_bytes(sha256(seed + i.to_bytes(4, "big")).digest(), "big") % BN254_R
        for i in range(rounds)
    )


MIMC_ROUND_CONSTANTS: Tuple[int, ...] = _derive_round_constants(
    MIMC_PARAMS.constant_seed, MIMC_ROUNDS
)


def mimc_permute(x: int) -> int:
    """Apply all MiMC rounds to a single state value (as int)."""
    x %= BN254_R
    for c in MIMC_ROUND_CONSTANTS:
        x = pow(x + c, MIMC_EXPONENT, BN254_R)
    return x


def mimc_hash_2(a, b) -> FR:
    """
    Compress two field elements into one.

    Args:
        a: Fr element or int
        b: Fr element or int

    Returns:
        Fr element after MIMC_ROUNDS rounds over the initial state a + b
    """
    return FR(mimc_permute(int(a) + int(b)))
