"""
Binarizer tests: bit layout, word count and determinism.
"""

import inspect
from typing import Optional

import numpy as np
import pytest

from kiosk.core.errors import InvalidInput
from kiosk.vector.binarize import binarize, bits_of, face_embedding_to_binary


def test_bit_i_set_iff_value_above_threshold():
    """Bit i reflects values[i] > threshold, least significant bit first."""
    vector = binarize([1.0, -1.0, 0.5, 0.0])

    assert vector.dtype == np.uint64
    assert len(vector) == 1
    assert int(vector[0]) == 0b0101


def test_threshold_is_strict():
    """Values equal to the threshold stay unset."""
    vector = binarize([0.3, 0.3, 0.31], threshold=0.3)

    assert int(vector[0]) == 0b100


def test_word_count_is_ceiling_of_bits_over_64():
    """Output has ceil(len / 64) words."""
    assert len(binarize([1.0] * 64)) == 1
    assert len(binarize([1.0] * 65)) == 2
    assert len(binarize([1.0] * 128)) == 2
    assert len(binarize([1.0] * 129)) == 3


def test_bits_spill_into_next_word_little_endian():
    """Bit 64 is the least significant bit of word 1."""
    values = [-1.0] * 128
    values[63] = 1.0
    values[64] = 1.0

    vector = binarize(values)

    assert int(vector[0]) == 1 << 63
    assert int(vector[1]) == 1


def test_all_bits_set_gives_full_words():
    vector = binarize([2.0] * 128)

    assert [int(w) for w in vector] == [2**64 - 1, 2**64 - 1]


def test_partial_last_word_is_zero_padded():
    """Unused high bits of the last word stay clear."""
    vector = binarize([1.0] * 70)

    assert int(vector[1]) == 0b111111


def test_binarize_is_deterministic():
    """Same input and threshold always give bit-identical output."""
    rng = np.random.default_rng(7)
    values = rng.normal(size=128).tolist()

    first = binarize(values, 0.1)
    second = binarize(list(values), 0.1)

    assert np.array_equal(first, second)


def test_binarize_returns_read_only_vector():
    vector = binarize([1.0, 2.0])

    with pytest.raises(ValueError):
        vector[0] = 0


def test_empty_input_raises_invalid_input():
    with pytest.raises(InvalidInput):
        binarize([])


def test_non_numeric_input_raises_invalid_input():
    with pytest.raises(InvalidInput):
        binarize(["a", "b"])


def test_non_finite_values_raise_invalid_input():
    with pytest.raises(InvalidInput):
        binarize([1.0, float("nan")])


def test_face_embedding_to_binary_uses_zero_threshold():
    embedding = [0.2, -0.2, 0.0, 0.9]

    assert np.array_equal(face_embedding_to_binary(embedding), binarize(embedding, 0.0))


def test_bits_of_renders_bit_zero_first():
    vector = binarize([1.0, -1.0, 1.0, 1.0])

    assert bits_of(vector, 4) == "1011"
    assert len(bits_of(vector)) == 64


def test_bits_of_bit_length_is_optional():
    vector = binarize([1.0] * 70)

    assert bits_of(vector, None) == "1" * 70 + "0" * 58
    assert inspect.signature(bits_of).parameters["bit_length"].annotation == Optional[int]
