"""
Matcher strategy tests.
"""

import numpy as np
import pytest

from kiosk.core.errors import InvalidInput, LengthMismatch
from kiosk.core.signatures import average_hash, content_fingerprint
from kiosk.vector.matchers import (
    ContentHashMatcher,
    CosineMatcher,
    HammingMatcher,
    MatcherStrategy,
    PerceptualHashMatcher,
    cosine_similarity,
    get_matcher,
)


def words(*values):
    return np.array(values, dtype=np.uint64)


class TestHammingMatcher:

    def test_best_candidate_matches(self):
        matcher = HammingMatcher()
        candidates = [("far", words(0xFFFF, 0)), ("near", words(0b1, 0))]

        result = matcher.query(words(0, 0), candidates, threshold=4)

        assert result.id == "near"
        assert result.score == 1
        assert result.matched is True

    def test_best_candidate_over_threshold_does_not_match(self):
        result = HammingMatcher().query(words(0, 0), [("a", words(0xFF, 0))], threshold=4)

        assert result.id == "a"
        assert result.matched is False

    def test_no_candidates_returns_none(self):
        assert HammingMatcher().query(words(0, 0), [], threshold=4) is None

    def test_width_mismatch_rejected(self):
        with pytest.raises(LengthMismatch):
            HammingMatcher().query(words(0, 0), [("a", words(0))], threshold=4)


class TestCosineMatcher:

    def test_identical_embeddings_match(self):
        result = CosineMatcher().query([1.0, 0.0, 0.0], [("a", [1.0, 0.0, 0.0]), ("b", [0.0, 1.0, 0.0])], 0.6)

        assert result.id == "a"
        assert result.score == pytest.approx(1.0)
        assert result.matched is True

    def test_opposite_embedding_clamped_to_zero(self):
        result = CosineMatcher().query([1.0, 0.0], [("a", [-1.0, 0.0])], 0.6)

        assert result.score == 0.0
        assert result.matched is False

    def test_tie_goes_to_smallest_id(self):
        result = CosineMatcher().query([1.0, 1.0], [("z", [1.0, 1.0]), ("m", [1.0, 1.0])], 0.6)

        assert result.id == "m"

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(LengthMismatch):
            cosine_similarity([1.0], [1.0, 0.0])


class TestPerceptualHashMatcher:

    def test_similarity_from_bit_string_distance(self):
        probe = "1" * 64
        near = "0" * 4 + "1" * 60
        far = "0" * 32 + "1" * 32

        result = PerceptualHashMatcher().query(probe, [("far", far), ("near", near)], 0.8)

        assert result.id == "near"
        assert result.score == pytest.approx(60 / 64)
        assert result.matched is True

    def test_average_hash_feeds_matcher(self):
        gradient = [[row * 8 + col for col in range(8)] for row in range(8)]
        inverted = [[63 - value for value in row] for row in gradient]

        result = PerceptualHashMatcher().query(
            average_hash(gradient),
            [("same", average_hash(gradient)), ("inverted", average_hash(inverted))],
            0.8,
        )

        assert result.id == "same"
        assert result.score == 1.0

    def test_empty_probe_rejected(self):
        with pytest.raises(InvalidInput):
            PerceptualHashMatcher().query("", [("a", "")], 0.8)


class TestContentHashMatcher:

    def test_exact_fingerprint_matches(self):
        probe = content_fingerprint(b"frame-1")
        candidates = [("other", content_fingerprint(b"frame-2")), ("same", content_fingerprint(b"frame-1"))]

        result = ContentHashMatcher().query(probe, candidates, 1.0)

        assert result.id == "same"
        assert result.matched is True

    def test_no_equal_fingerprint_does_not_match(self):
        result = ContentHashMatcher().query("abc", [("b", "xyz"), ("a", "def")], 1.0)

        assert result.id == "a"
        assert result.matched is False


def test_get_matcher_by_name():
    assert isinstance(get_matcher("hamming"), HammingMatcher)
    assert isinstance(get_matcher("cosine"), MatcherStrategy)

    with pytest.raises(InvalidInput):
        get_matcher("euclidean")


class TestHammingThreshold:

    @pytest.mark.parametrize("threshold", [40.9, 0.5, float("nan"), float("inf"), "40", True])
    def test_non_whole_thresholds_rejected(self, threshold):
        with pytest.raises(InvalidInput):
            HammingMatcher().query(words(0, 0), [("a", words(0b1, 0))], threshold=threshold)

    def test_whole_float_threshold_accepted(self):
        result = HammingMatcher().query(words(0, 0), [("a", words(0b111, 0))], threshold=3.0)

        assert result.matched is True
        assert result.score == 3

    def test_threshold_checked_even_without_candidates(self):
        with pytest.raises(InvalidInput):
            HammingMatcher().query(words(0, 0), [], threshold=1.5)
