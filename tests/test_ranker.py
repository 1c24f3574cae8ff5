"""
Hamming ranking tests: distance properties, ordering, tie-breaks and bounds.
"""

import numpy as np
import pytest

from kiosk.core.errors import InvalidInput, LengthMismatch
from kiosk.vector.index import InMemoryVectorStore
from kiosk.vector.ranker import Ranker, hamming_distance, popcount64
from kiosk.vector.types import EntityRecord


def vector_with_bits(count, words=2):
    """Vector whose lowest ``count`` bits are set."""
    bits = np.zeros(words * 64, dtype=np.uint8)
    bits[:count] = 1
    return np.packbits(bits, bitorder="little").view("<u8").astype(np.uint64)


@pytest.fixture
def random_vectors():
    rng = np.random.default_rng(42)
    return [np.frombuffer(rng.bytes(16), dtype=np.uint64).copy() for _ in range(20)]


def test_popcount64():
    assert popcount64(0) == 0
    assert popcount64(1) == 1
    assert popcount64(0b1011) == 3
    assert popcount64(2**64 - 1) == 64


def test_hamming_of_vector_with_itself_is_zero(random_vectors):
    for v in random_vectors:
        assert hamming_distance(v, v) == 0


def test_hamming_is_symmetric_and_bounded(random_vectors):
    for a in random_vectors:
        for b in random_vectors:
            d = hamming_distance(a, b)
            assert d == hamming_distance(b, a)
            assert 0 <= d <= 128


def test_hamming_counts_across_words():
    a = np.array([0, 0], dtype=np.uint64)
    b = np.array([0b11, 2**63], dtype=np.uint64)

    assert hamming_distance(a, b) == 3


def test_hamming_length_mismatch():
    with pytest.raises(LengthMismatch):
        hamming_distance(np.zeros(2, dtype=np.uint64), np.zeros(3, dtype=np.uint64))


def test_query_sorted_by_distance_and_bounded_by_k():
    store = InMemoryVectorStore(bit_length=128)
    for name, bits in [("far", 60), ("near", 2), ("mid", 20), ("exact", 0)]:
        store.upsert(EntityRecord(id=name, vector=vector_with_bits(bits)))

    results = store.query(vector_with_bits(0), top_k=3)

    assert [r.id for r in results] == ["exact", "near", "mid"]
    assert [r.distance for r in results] == [0, 2, 20]


def test_query_returns_all_when_k_exceeds_store():
    store = InMemoryVectorStore(bit_length=128)
    store.upsert(EntityRecord(id="a", vector=vector_with_bits(1)))

    assert len(store.query(vector_with_bits(0), top_k=10)) == 1


def test_ties_broken_by_ascending_id():
    """Equal distances come back in ascending id order regardless of insertion order."""
    store = InMemoryVectorStore(bit_length=128)
    for name in ["carol", "alice", "bob"]:
        store.upsert(EntityRecord(id=name, vector=vector_with_bits(4)))

    results = store.query(vector_with_bits(0), top_k=3)

    assert [r.id for r in results] == ["alice", "bob", "carol"]


def test_query_results_carry_record():
    store = InMemoryVectorStore(bit_length=128)
    store.upsert(EntityRecord(id="a", vector=vector_with_bits(3), metadata={"name": "A"}))

    result = store.query(vector_with_bits(0), top_k=1)[0]

    assert result.record.metadata == {"name": "A"}
    assert result.distance == 3


def test_top_k_must_be_positive():
    store = InMemoryVectorStore(bit_length=128)
    store.upsert(EntityRecord(id="a", vector=vector_with_bits(3)))

    with pytest.raises(InvalidInput):
        store.query(vector_with_bits(0), top_k=0)


def test_ranker_without_acceleration_uses_scalar_path():
    ranker = Ranker()
    records = [EntityRecord(id="a", vector=vector_with_bits(5))]

    results, path = ranker.rank_with_path(vector_with_bits(0), records, top_k=1)

    assert results[0].distance == 5
    assert path == "scalar"


def test_ranker_rejects_probe_width_other_than_expected():
    ranker = Ranker()
    records = [EntityRecord(id="a", vector=vector_with_bits(5))]

    with pytest.raises(LengthMismatch):
        ranker.rank(vector_with_bits(0, words=3), records, top_k=1, word_count=2)
