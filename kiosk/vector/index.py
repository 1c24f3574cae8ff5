"""
In-memory vector store for enrolled signatures.

The store is process-lifetime only and is never persisted. Every vector in one
store shares a fixed word count. Mutations are serialized under a lock; reads
copy the record table under the same lock and work on that snapshot.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..core.errors import InvalidInput, LengthMismatch
from .ranker import Ranker
from .types import BinaryVector, EntityRecord, QueryResult, as_binary_vector, padding_bits_set, words_for_bits

from util.logging import logger


class IVectorStore(ABC):
    """Abstract interface for enrolled-signature storage."""

    @abstractmethod
    def upsert(self, record: EntityRecord) -> None:
        """Insert or fully replace the record under ``record.id``."""
        pass

    @abstractmethod
    def remove(self, record_id: str) -> None:
        """Delete the record if present."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove all records."""
        pass

    @abstractmethod
    def get(self, record_id: str) -> Optional[EntityRecord]:
        pass

    @abstractmethod
    def all(self) -> List[EntityRecord]:
        """Snapshot of every record."""
        pass

    @abstractmethod
    def query(self, probe: BinaryVector, top_k: int = 5) -> List[QueryResult]:
        """Rank records against ``probe`` by Hamming distance."""
        pass


class InMemoryVectorStore(IVectorStore):
    """Thread-safe dictionary-backed store with exhaustive Hamming search.

    An empty store answers ``query`` with an empty list; deciding what an
    empty result means is left to the caller.
    """

    def __init__(self, bit_length: int = 128, ranker: Ranker = None):
        if bit_length < 1:
            raise InvalidInput(f"bit_length must be positive, got {bit_length}")
        self.bit_length = bit_length
        self.word_count = words_for_bits(bit_length)
        self.ranker = ranker or Ranker()
        self._records: Dict[str, EntityRecord] = {}
        self._lock = threading.RLock()

    def upsert(self, record: EntityRecord) -> None:
        """Insert or replace a record; the store is untouched if validation fails."""
        if not isinstance(record.id, str) or not record.id.strip():
            raise InvalidInput("Record id must be a non-empty string")

        vector = self._checked_vector(record.vector)

        stored = EntityRecord(id=record.id, vector=vector, metadata=dict(record.metadata or {}))
        with self._lock:
            replaced = record.id in self._records
            self._records[record.id] = stored

        logger.log_store_operation("upsert", record.id, {"replaced": replaced})

    def remove(self, record_id: str) -> None:
        with self._lock:
            existed = self._records.pop(record_id, None) is not None

        if existed:
            logger.log_store_operation("remove", record_id)

    def clear(self) -> None:
        with self._lock:
            count = len(self._records)
            self._records = {}

        logger.log_store_operation("clear", details={"removed": count})

    def get(self, record_id: str) -> Optional[EntityRecord]:
        with self._lock:
            return self._records.get(record_id)

    def all(self) -> List[EntityRecord]:
        with self._lock:
            return list(self._records.values())

    def query(self, probe: BinaryVector, top_k: int = 5) -> List[QueryResult]:
        probe_vector = self._checked_vector(probe)

        snapshot = self.all()
        results, path = self.ranker.rank_with_path(probe_vector, snapshot, top_k, word_count=self.word_count)

        logger.log_query(
            candidates=len(snapshot),
            returned=len(results),
            top_k=top_k,
            path=path,
            best_distance=results[0].distance if results else None,
        )
        return results

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._records

    def _checked_vector(self, words) -> BinaryVector:
        vector = as_binary_vector(words)
        if vector.shape[0] != self.word_count:
            raise LengthMismatch(self.word_count, vector.shape[0])
        if padding_bits_set(vector, self.bit_length):
            raise InvalidInput(f"Vector has bits set at or above bit_length {self.bit_length}")
        return vector
