"""
Similarity index: binarizer, in-memory store, Hamming ranker, optional
accelerated kernel and the match decision.
"""

from .types import WORD_BITS, BinaryVector, EntityRecord, QueryResult, as_binary_vector
from .binarize import binarize, bits_of, face_embedding_to_binary
from .ranker import Ranker, hamming_distance, popcount64
from .acceleration import AccelerationProvider, FaissHammingKernel, load_faiss_kernel
from .index import IVectorStore, InMemoryVectorStore
from .decision import MatchOutcome, decide
from .matchers import (
    MatcherStrategy,
    MatcherResult,
    HammingMatcher,
    CosineMatcher,
    PerceptualHashMatcher,
    ContentHashMatcher,
    get_matcher,
)

__all__ = [
    'WORD_BITS',
    'BinaryVector',
    'EntityRecord',
    'QueryResult',
    'as_binary_vector',
    'binarize',
    'bits_of',
    'face_embedding_to_binary',
    'Ranker',
    'hamming_distance',
    'popcount64',
    'AccelerationProvider',
    'FaissHammingKernel',
    'load_faiss_kernel',
    'IVectorStore',
    'InMemoryVectorStore',
    'MatchOutcome',
    'decide',
    'MatcherStrategy',
    'MatcherResult',
    'HammingMatcher',
    'CosineMatcher',
    'PerceptualHashMatcher',
    'ContentHashMatcher',
    'get_matcher',
]
