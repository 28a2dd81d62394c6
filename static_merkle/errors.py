"""Exception taxonomy for static Merkle commitments.

Every failure the library raises derives from MerkleError, and also from the
closest builtin so callers can catch either. A proof that fails verification is
not an error: MerkleProof.verify() returns False.
"""


class MerkleError(Exception):
    """Base class for all static_merkle failures."""


class EmptyArrayError(MerkleError, ValueError):
    """A commitment was requested over an empty array."""


class IndexOutOfRangeError(MerkleError, IndexError):
    """Requested leaf index is outside [0, len)."""

    def __init__(self, index: int, length: int):
        super().__init__(f"index {index} out of range [0, {length})")
        self.index = index
        self.length = length


class ItemNotFoundError(MerkleError, LookupError):
    """Value is not in the array, or the requested occurrence does not exist."""


class MerkleDecodeError(MerkleError, ValueError):
    """Persisted bytes are malformed or do not match the expected schema."""


class EncodingError(MerkleError, TypeError):
    """Value cannot be canonically encoded, or encoded bytes are malformed."""
