"""
Matcher strategies behind a single ``query(probe, candidates, threshold)`` call.

HammingMatcher over packed bit vectors is the canonical strategy used by the
kiosk. The others cover the alternative signature kinds a generator may emit:
float embeddings (cosine), perceptual hash bit strings, and content digests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import InvalidInput, LengthMismatch
from .decision import decide
from .ranker import Ranker
from .types import EntityRecord, as_binary_vector

Candidate = Tuple[str, Any]


@dataclass(frozen=True)
class MatcherResult:
    id: str
    score: float
    matched: bool
    threshold: float


class MatcherStrategy(ABC):
    """Find the best candidate for a probe and apply a threshold to it."""

    name = "base"
    higher_is_better = True

    @abstractmethod
    def query(self, probe: Any, candidates: Sequence[Candidate], threshold: float) -> Optional[MatcherResult]:
        """Return the best candidate (matched or not), or None when there are no candidates."""
        pass

    def _pick_best(self, scored: Sequence[Tuple[str, float]]) -> Tuple[str, float]:
        if self.higher_is_better:
            return min(scored, key=lambda item: (-item[1], item[0]))
        return min(scored, key=lambda item: (item[1], item[0]))


def _whole_bit_threshold(threshold) -> int:
    """A Hamming threshold as a whole number of bits; fractional values raise InvalidInput."""
    if isinstance(threshold, (bool, np.bool_)) or not isinstance(threshold, (int, np.integer, float, np.floating)):
        raise InvalidInput(f"Hamming threshold must be a whole number of bits, got {threshold!r}")
    if isinstance(threshold, (float, np.floating)) and not (np.isfinite(threshold) and float(threshold).is_integer()):
        raise InvalidInput(f"Hamming threshold must be a whole number of bits, got {threshold!r}")
    return int(threshold)


class HammingMatcher(MatcherStrategy):
    """Packed-bit Hamming distance; lower is better."""

    name = "hamming"
    higher_is_better = False

    def __init__(self, ranker: Ranker = None):
        self.ranker = ranker or Ranker()

    def query(self, probe, candidates, threshold=40):
        max_distance = _whole_bit_threshold(threshold)
        if not candidates:
            return None

        probe_vector = as_binary_vector(probe)
        records = [EntityRecord(id=cid, vector=as_binary_vector(vec)) for cid, vec in candidates]
        for record in records:
            if record.word_count != len(probe_vector):
                raise LengthMismatch(len(probe_vector), record.word_count)

        results = self.ranker.rank(probe_vector, records, top_k=1)
        outcome = decide(results, max_distance)
        return MatcherResult(
            id=outcome.record_id,
            score=outcome.distance,
            matched=outcome.matched,
            threshold=threshold,
        )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; zero-norm vectors score 0."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise LengthMismatch(va.size, vb.size)
    if va.size == 0:
        raise InvalidInput("Embeddings cannot be empty")

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class CosineMatcher(MatcherStrategy):
    """Float embeddings compared by cosine similarity clamped to [0, 1]."""

    name = "cosine"

    def query(self, probe, candidates, threshold=0.6):
        if not candidates:
            return None

        scored = [
            (cid, max(0.0, min(1.0, cosine_similarity(probe, embedding))))
            for cid, embedding in candidates
        ]
        best_id, best_score = self._pick_best(scored)
        return MatcherResult(id=best_id, score=best_score, matched=best_score >= threshold, threshold=threshold)


def bit_string_distance(hash1: str, hash2: str) -> int:
    if len(hash1) != len(hash2):
        raise LengthMismatch(len(hash1), len(hash2))
    return sum(1 for x, y in zip(hash1, hash2) if x != y)


class PerceptualHashMatcher(MatcherStrategy):
    """Average-hash bit strings scored as ``1 - distance / length``."""

    name = "perceptual_hash"

    def query(self, probe, candidates, threshold=0.8):
        if not candidates:
            return None
        if not probe:
            raise InvalidInput("Perceptual hash cannot be empty")

        scored = [
            (cid, 1.0 - bit_string_distance(probe, image_hash) / len(probe))
            for cid, image_hash in candidates
        ]
        best_id, best_score = self._pick_best(scored)
        return MatcherResult(id=best_id, score=best_score, matched=best_score >= threshold, threshold=threshold)


class ContentHashMatcher(MatcherStrategy):
    """Exact digest equality; the threshold is ignored."""

    name = "content_hash"

    def query(self, probe, candidates, threshold=1.0):
        if not candidates:
            return None

        scored = [(cid, 1.0 if fingerprint == probe else 0.0) for cid, fingerprint in candidates]
        best_id, best_score = self._pick_best(scored)
        return MatcherResult(id=best_id, score=best_score, matched=best_score == 1.0, threshold=threshold)


MATCHERS = {
    HammingMatcher.name: HammingMatcher,
    CosineMatcher.name: CosineMatcher,
    PerceptualHashMatcher.name: PerceptualHashMatcher,
    ContentHashMatcher.name: ContentHashMatcher,
}


def get_matcher(name: str, **kwargs) -> MatcherStrategy:
    try:
        return MATCHERS[name](**kwargs)
    except KeyError:
        raise InvalidInput(f"Unknown matcher strategy: {name}. Valid: {sorted(MATCHERS)}")
