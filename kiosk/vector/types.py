"""
Record and result types for the similarity index.

A BinaryVector is a one-dimensional numpy array of dtype uint64; bit ``i`` of
the signature lives in word ``i // 64`` at position ``i % 64``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np

from ..core.errors import InvalidInput

WORD_BITS = 64
WORD_DTYPE = np.uint64

BinaryVector = np.ndarray


@dataclass(frozen=True, eq=False)
class EntityRecord:
    """An enrolled identity and its packed signature."""

    id: str
    """Opaque unique identifier of the enrolled identity"""

    vector: BinaryVector
    """Packed binary signature, one uint64 per 64 bits"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Opaque metadata bag stored alongside the vector"""

    @property
    def word_count(self) -> int:
        return int(self.vector.shape[0])

    @property
    def bit_length(self) -> int:
        return self.word_count * WORD_BITS


@dataclass(frozen=True)
class QueryResult:
    """A ranked candidate from a Hamming query."""

    record: EntityRecord
    """The matching record"""

    distance: int
    """Hamming distance to the probe, in [0, bit_length]"""

    @property
    def id(self) -> str:
        return self.record.id


def as_binary_vector(words) -> BinaryVector:
    """Return ``words`` as an owned, read-only uint64 vector.

    Only unsigned 64-bit integer words are accepted; floats, booleans,
    negative or oversized values raise InvalidInput instead of being coerced.
    """
    try:
        array = np.asarray(words)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidInput(f"Vector words must be unsigned 64-bit integers: {e}")

    if array.size == 0:
        vector = np.zeros(0, dtype=WORD_DTYPE)
    elif array.dtype.kind == "u":
        vector = array.astype(WORD_DTYPE, copy=True)
    elif array.dtype.kind == "i":
        if int(array.min()) < 0:
            raise InvalidInput("Vector words must be non-negative")
        vector = array.astype(WORD_DTYPE, copy=True)
    elif array.dtype.kind == "O":
        values = array.reshape(-1)
        for value in values:
            if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
                raise InvalidInput(f"Vector words must be integers, got {type(value).__name__}")
            if not 0 <= int(value) < 2**WORD_BITS:
                raise InvalidInput(f"Vector word {int(value)} is outside the unsigned 64-bit range")
        vector = np.array([int(value) for value in values], dtype=WORD_DTYPE)
    else:
        raise InvalidInput(f"Vector words must be unsigned 64-bit integers, got dtype {array.dtype}")

    vector = vector.reshape(-1)
    vector.setflags(write=False)
    return vector


def padding_bits_set(vector: BinaryVector, bit_length: int) -> bool:
    """True if any bit at or above ``bit_length`` is set in the last word."""
    tail = bit_length % WORD_BITS
    return tail != 0 and len(vector) > 0 and (int(vector[-1]) >> tail) != 0


def words_for_bits(bit_length: int) -> int:
    return -(-bit_length // WORD_BITS)
