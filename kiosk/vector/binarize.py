"""
Binarizer: turns a real-valued signature into a packed bit vector.

Bit ``i`` is set iff ``values[i] > threshold``. Bits are packed little-endian
inside each 64-bit word, so ``values[0]`` is the least significant bit of word 0.
"""

import math
from typing import Optional, Sequence

import numpy as np

from ..core.errors import InvalidInput
from .types import WORD_BITS, BinaryVector, as_binary_vector, words_for_bits


def binarize(values: Sequence[float], threshold: float = 0.0) -> BinaryVector:
    """Pack ``values > threshold`` into ``ceil(len(values) / 64)`` uint64 words."""
    try:
        array = np.asarray(values, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Signature must be a sequence of real numbers: {e}")

    if array.size == 0:
        raise InvalidInput("Signature cannot be empty")
    if not np.all(np.isfinite(array)):
        raise InvalidInput("Signature values must be finite numbers")
    if not math.isfinite(threshold):
        raise InvalidInput("Binarize threshold must be a finite number")

    num_words = words_for_bits(array.size)
    bits = np.zeros(num_words * WORD_BITS, dtype=np.uint8)
    bits[:array.size] = array > threshold

    # Little bit order within each byte, little-endian bytes within each word.
    packed = np.packbits(bits, bitorder="little")
    return as_binary_vector(packed.view("<u8"))


def face_embedding_to_binary(embedding: Sequence[float]) -> BinaryVector:
    """Binarize a face embedding around zero."""
    return binarize(embedding, 0.0)


def bits_of(vector: BinaryVector, bit_length: Optional[int] = None) -> str:
    """Render a packed vector as a '0'/'1' string, bit 0 first."""
    words = [int(w) for w in vector]
    total = bit_length if bit_length is not None else len(words) * WORD_BITS
    return "".join(
        "1" if (words[i // WORD_BITS] >> (i % WORD_BITS)) & 1 else "0"
        for i in range(total)
    )
