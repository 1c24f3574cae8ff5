"""
Hamming ranking over packed binary vectors.

The Ranker scores every candidate by popcount(probe XOR vector) and returns the
best ``top_k`` ordered by (distance, id). When an AccelerationProvider hands
out a kernel, distances are computed through it; any kernel failure drops back
to the scalar path without surfacing to the caller.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import AccelerationUnavailable, InvalidInput, LengthMismatch
from .types import BinaryVector, EntityRecord, QueryResult, WORD_DTYPE

from util.logging import logger


def popcount64(word: int) -> int:
    """Count set bits in a single 64-bit word."""
    return bin(int(word)).count("1")


def hamming_distance(a: BinaryVector, b: BinaryVector) -> int:
    """Number of differing bits between two vectors of equal word count."""
    if len(a) != len(b):
        raise LengthMismatch(len(a), len(b))
    return sum(popcount64(int(x) ^ int(y)) for x, y in zip(a, b))


def stack_vectors(records: Sequence[EntityRecord], word_count: int) -> np.ndarray:
    """Stack record vectors into an (n, word_count) uint64 matrix."""
    if not records:
        return np.zeros((0, word_count), dtype=WORD_DTYPE)
    return np.vstack([record.vector for record in records]).astype(WORD_DTYPE, copy=False)


class Ranker:
    """Exhaustive Hamming ranker with optional accelerated distance kernel."""

    SCALAR_PATH = "scalar"

    def __init__(self, acceleration=None):
        """
        Args:
            acceleration: object exposing ``maybe_accelerate()``; None disables
                the accelerated path entirely.
        """
        self.acceleration = acceleration

    def rank(self, probe: BinaryVector, records: Sequence[EntityRecord], top_k: int,
             word_count: Optional[int] = None) -> List[QueryResult]:
        """Return up to ``top_k`` results sorted by (distance, id)."""
        results, _ = self.rank_with_path(probe, records, top_k, word_count)
        return results

    def rank_with_path(self, probe: BinaryVector, records: Sequence[EntityRecord], top_k: int,
                       word_count: Optional[int] = None) -> Tuple[List[QueryResult], str]:
        """Like ``rank``, also naming the distance path this call took."""
        if top_k < 1:
            raise InvalidInput(f"top_k must be >= 1, got {top_k}")

        expected = word_count if word_count is not None else len(probe)
        if len(probe) != expected:
            raise LengthMismatch(expected, len(probe))
        if not records:
            return [], self.SCALAR_PATH

        distances, path = self._accelerated_distances(probe, records, expected)
        if distances is None:
            path = self.SCALAR_PATH
            distances = [hamming_distance(probe, record.vector) for record in records]

        results = [
            QueryResult(record=record, distance=int(distance))
            for record, distance in zip(records, distances)
        ]
        results.sort(key=lambda r: (r.distance, r.record.id))
        return results[:top_k], path

    def _accelerated_distances(self, probe: BinaryVector, records: Sequence[EntityRecord],
                               word_count: int) -> Tuple[Optional[List[int]], Optional[str]]:
        if self.acceleration is None:
            return None, None

        kernel = self.acceleration.maybe_accelerate()
        if kernel is None:
            return None, None

        name = getattr(kernel, "name", "accelerated")
        try:
            matrix = stack_vectors(records, word_count)
            distances = kernel.distances(np.asarray(probe, dtype=WORD_DTYPE), matrix)
            if len(distances) != len(records):
                raise AccelerationUnavailable(
                    f"Kernel returned {len(distances)} distances for {len(records)} records"
                )
        except Exception as e:
            logger.log_acceleration("degraded", {"kernel": name, "error": str(e)})
            return None, None

        return [int(d) for d in distances], name
