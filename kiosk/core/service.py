"""
Kiosk use cases: enrollment, recognition-driven clock in/out, removal and
directory sync.

A KioskService owns one vector store for its whole lifetime. It is built once at
startup, handed to request handlers, and torn down with ``shutdown()``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..vector.binarize import binarize
from ..vector.decision import MatchOutcome, decide
from ..vector.index import InMemoryVectorStore
from ..vector.ranker import Ranker, hamming_distance
from ..vector.types import BinaryVector, EntityRecord, QueryResult
from . import config
from .attendance import Action, next_action
from .directory import IIdentityDirectory, Identity, SQLiteIdentityDirectory
from .errors import EmptyStore, IdentityNotFound, InvalidInput, LengthMismatch
from .ledger import IAttendanceLedger, SQLiteAttendanceLedger
from .signatures import ISignatureGenerator

from util.logging import logger


@dataclass
class AttendanceResult:
    success: bool
    message: str
    identity_id: Optional[str] = None
    name: Optional[str] = None
    action: Optional[Action] = None
    timestamp: Optional[datetime] = None
    record_id: Optional[str] = None
    distance: Optional[int] = None
    threshold: Optional[int] = None


class KioskService:
    """Wires signature generation, the similarity index and the ledger together."""

    def __init__(self, store: InMemoryVectorStore, generator: ISignatureGenerator,
                 ledger: IAttendanceLedger, directory: IIdentityDirectory = None,
                 max_distance: int = 40, top_k: int = 5, binarize_threshold: float = 0.0):
        self.store = store
        self.generator = generator
        self.ledger = ledger
        self.directory = directory
        self.max_distance = max_distance
        self.top_k = top_k
        self.binarize_threshold = binarize_threshold

    @classmethod
    def from_config(cls, db_path: str = None) -> "KioskService":
        """Build a service from environment configuration."""
        issues = config.validate_config()
        if issues:
            raise InvalidInput("Invalid kiosk configuration: " + "; ".join(issues), {"issues": issues})

        ranker = Ranker(acceleration=config.get_acceleration_provider())
        db_path = db_path or config.DB_PATH
        return cls(
            store=InMemoryVectorStore(bit_length=config.SIGNATURE_BITS, ranker=ranker),
            generator=config.get_signature_generator(),
            ledger=SQLiteAttendanceLedger(
                db_path,
                max_retries=config.COLLABORATOR_MAX_RETRIES,
                backoff_sec=config.COLLABORATOR_BACKOFF_SEC,
            ),
            directory=SQLiteIdentityDirectory(db_path),
            max_distance=config.MAX_HAMMING_DISTANCE,
            top_k=config.QUERY_TOP_K,
            binarize_threshold=config.BINARIZE_THRESHOLD,
        )

    def signature_for(self, raw_image: bytes) -> BinaryVector:
        """Generate and binarize a capture's signature at the store's bit length."""
        values = self.generator.generate(raw_image)
        if len(values) != self.store.bit_length:
            raise LengthMismatch(self.store.bit_length, len(values))
        return binarize(values, self.binarize_threshold)

    def enroll(self, identity_id: str, raw_image: bytes, metadata: Dict[str, Any] = None) -> EntityRecord:
        """Add or replace an identity's signature."""
        identity = self._require_identity(identity_id)
        vector = self.signature_for(raw_image)

        if metadata is None and identity is not None:
            metadata = {"name": identity.name, "email": identity.email}
        record = EntityRecord(id=identity_id, vector=vector, metadata=metadata or {})
        self.store.upsert(record)
        return self.store.get(identity_id)

    def register(self, name: str, email: str, raw_image: bytes) -> Identity:
        """Create a directory entry and enroll its face in one step."""
        if self.directory is None:
            raise InvalidInput("Registration requires an identity directory")

        # Generate first so a capture without a face leaves no directory entry behind
        vector = self.signature_for(raw_image)
        identity = self.directory.register(name, email)
        self.store.upsert(EntityRecord(
            id=identity.id,
            vector=vector,
            metadata={"name": identity.name, "email": identity.email},
        ))
        return identity

    def clock_in(self, raw_image: bytes, identity_id: str = None) -> AttendanceResult:
        """Recognize the capture and toggle the matched identity's attendance."""
        if identity_id:
            self._require_identity(identity_id)
            record = self.store.get(identity_id)
            if record is None:
                raise InvalidInput("User has no registered face vector", {"identity_id": identity_id})
            probe = self.signature_for(raw_image)
            outcome = decide(QueryResult(record=record, distance=hamming_distance(probe, record.vector)),
                             self.max_distance)
            rejection = "Face does not match registered user"
        else:
            if len(self.store) == 0:
                raise EmptyStore("No registered users with face vectors found")
            probe = self.signature_for(raw_image)
            outcome = decide(self.store.query(probe, self.top_k), self.max_distance)
            rejection = "No matching user found"

        if not outcome.matched:
            return AttendanceResult(
                success=False,
                message=rejection,
                distance=outcome.distance,
                threshold=outcome.threshold,
            )

        return self._toggle(outcome)

    def remove(self, identity_id: str) -> bool:
        """Drop an identity's vector and its directory entry."""
        existed = identity_id in self.store
        self.store.remove(identity_id)
        if self.directory is not None:
            existed = self.directory.delete(identity_id) or existed
        return existed

    def sync(self) -> List[Dict[str, Any]]:
        """Directory entries annotated with whether a vector is enrolled."""
        if self.directory is None:
            return [
                {"id": record.id, "name": record.metadata.get("name"), "enrolled": True}
                for record in sorted(self.store.all(), key=lambda r: r.id)
            ]

        return [
            {
                "id": identity.id,
                "name": identity.name,
                "email": identity.email,
                "created_at": identity.created_at,
                "enrolled": identity.id in self.store,
            }
            for identity in self.directory.list_identities()
        ]

    def shutdown(self) -> None:
        self.store.clear()
        logger.info("Kiosk service shut down; in-memory signatures released")

    def _toggle(self, outcome: MatchOutcome) -> AttendanceResult:
        identity_id = outcome.record_id
        action = next_action(self.ledger.last_status(identity_id))
        entry = self.ledger.append(identity_id, action)

        return AttendanceResult(
            success=True,
            message=f"Successfully {action.past_tense}",
            identity_id=identity_id,
            name=self._display_name(outcome.best.record),
            action=action,
            timestamp=entry.timestamp,
            record_id=entry.record_id,
            distance=outcome.distance,
            threshold=outcome.threshold,
        )

    def _display_name(self, record: EntityRecord) -> str:
        if self.directory is not None:
            identity = self.directory.get(record.id)
            if identity is not None:
                return identity.name
        return record.metadata.get("name") or "Unknown"

    def _require_identity(self, identity_id: str) -> Optional[Identity]:
        if not identity_id or not identity_id.strip():
            raise InvalidInput("identity_id is required")
        if self.directory is None:
            return None
        identity = self.directory.get(identity_id)
        if identity is None:
            raise IdentityNotFound("User not found", {"identity_id": identity_id})
        return identity
