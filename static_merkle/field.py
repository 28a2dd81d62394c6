"""
BN254 scalar field using the galois library.

This module provides a thin wrapper around galois for the prime field Fr of
the BN254 (alt_bn128) curve, the field used by the algebraic Merkle hasher.
"""

import galois

# r = 21888242871839275222246405745257275088548364400416034343698204186575808495617
BN254_R = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001

# Byte width of a canonical field element (254 bits rounded up)
FR_BYTES = 32

# Multiplicative generator of Fr. Passed explicitly with verify=False so galois
# does not factor r - 1 at import time.
FR_GENERATOR = 5

# Base field GF(r)
FR = galois.GF(BN254_R, primitive_element=FR_GENERATOR, verify=False)
"""Scalar field GF(r) of BN254."""


def to_fr(x: int) -> FR:
    """Reduce a Python int (possibly negative or >= r) into Fr."""
    return FR(int(x) % BN254_R)
