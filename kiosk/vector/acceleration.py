"""
Optional accelerated Hamming kernel.

The kernel runs on FAISS's binary flat index, which computes Hamming distances
over byte codes with hardware popcount. Loading is lazy and happens at most
once per provider; concurrent first callers wait on the same attempt. A kernel
that cannot be imported, or that disagrees with the scalar path on a fixed
self-check, is discarded and the provider reports it as absent.
"""

import threading
from typing import Callable, Optional

import numpy as np

from ..core.errors import AccelerationUnavailable
from .ranker import hamming_distance
from .types import WORD_BITS, BinaryVector

from util.logging import logger


class FaissHammingKernel:
    """Hamming distances through ``faiss.IndexBinaryFlat``."""

    name = "faiss"

    def __init__(self, faiss_module):
        self._faiss = faiss_module

    def distances(self, probe: BinaryVector, matrix: np.ndarray) -> np.ndarray:
        """Distance from ``probe`` to every row of ``matrix``, in row order."""
        rows, words = matrix.shape
        if rows == 0:
            return np.zeros(0, dtype=np.int64)

        # FAISS binary codes are bytes; little-endian words keep bit i in byte i // 8.
        codes = np.ascontiguousarray(matrix.astype("<u8")).view(np.uint8).reshape(rows, words * 8)
        query = np.ascontiguousarray(np.asarray(probe).astype("<u8")).view(np.uint8).reshape(1, words * 8)

        index = self._faiss.IndexBinaryFlat(words * WORD_BITS)
        index.add(codes)
        scores, labels = index.search(query, rows)

        out = np.empty(rows, dtype=np.int64)
        out[labels[0]] = scores[0]
        return out


def load_faiss_kernel() -> FaissHammingKernel:
    """Import FAISS and wrap it as a Hamming kernel."""
    try:
        import faiss
    except ImportError:
        raise AccelerationUnavailable("FAISS not installed. Please install faiss-cpu package.")
    return FaissHammingKernel(faiss)


def _self_check(kernel) -> None:
    """Verify the kernel agrees with the scalar path on a fixed pattern."""
    matrix = np.array([
        [0x0123456789ABCDEF, 0xFEDCBA9876543210],
        [0x0000000000000000, 0x0000000000000000],
        [0xFFFFFFFFFFFFFFFF, 0xAAAAAAAAAAAAAAAA],
        [0x5555555555555555, 0x8000000000000001],
    ], dtype=np.uint64)
    probe = matrix[0] ^ np.array([0xFF, 0x1], dtype=np.uint64)

    got = [int(d) for d in kernel.distances(probe, matrix)]
    expected = [hamming_distance(probe, row) for row in matrix]
    if got != expected:
        raise AccelerationUnavailable(f"Kernel self-check failed: {got} != {expected}")


class AccelerationProvider:
    """Single-flight, memoized loader for an accelerated distance kernel."""

    def __init__(self, loader: Callable[[], object] = None, enabled: bool = True):
        self._loader = loader or load_faiss_kernel
        self._enabled = enabled
        self._lock = threading.Lock()
        self._kernel = None
        self._loaded = False
        self.load_attempts = 0

    def maybe_accelerate(self) -> Optional[object]:
        """Return the shared kernel, or None when acceleration is unavailable."""
        if self._loaded:
            return self._kernel

        with self._lock:
            if not self._loaded:
                self._kernel = self._attempt_load()
                self._loaded = True
        return self._kernel

    @property
    def available(self) -> bool:
        return self.maybe_accelerate() is not None

    def _attempt_load(self) -> Optional[object]:
        if not self._enabled:
            logger.log_acceleration("disabled")
            return None

        self.load_attempts += 1
        try:
            kernel = self._loader()
            if kernel is None:
                raise AccelerationUnavailable("Loader returned no kernel")
            _self_check(kernel)
        except Exception as e:
            # Never fatal: the ranker falls back to the scalar path.
            reason = e if isinstance(e, AccelerationUnavailable) else AccelerationUnavailable(str(e))
            logger.log_acceleration("degraded", {"kind": reason.kind, "error": reason.message})
            return None

        logger.log_acceleration("success", {"kernel": getattr(kernel, "name", "unknown")})
        return kernel
