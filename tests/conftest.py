"""Shared fixtures: a kiosk service over a temporary database and fixed captures."""

import pytest

from kiosk.core.directory import SQLiteIdentityDirectory
from kiosk.core.errors import SignatureError
from kiosk.core.ledger import SQLiteAttendanceLedger
from kiosk.core.service import KioskService
from kiosk.core.signatures import ISignatureGenerator
from kiosk.vector.acceleration import AccelerationProvider
from kiosk.vector.index import InMemoryVectorStore
from kiosk.vector.ranker import Ranker


def signature(flipped, bits=128):
    """A signature whose binarized form differs from the all-zero vector in ``flipped`` bits."""
    return [1.0 if i < flipped else -1.0 for i in range(bits)]


class StubSignatureGenerator(ISignatureGenerator):
    """Maps known captures to fixed signatures; anything else has no face."""

    def __init__(self, captures, dimension=128):
        self.captures = captures
        self.dimension = dimension

    def generate(self, raw_image):
        if raw_image not in self.captures:
            raise SignatureError("No face detected")
        return self.captures[raw_image]

    def get_dimension(self):
        return self.dimension


CAPTURES = {
    b"ada-enroll": signature(0),
    b"ada-probe": signature(5),
    b"grace-enroll": signature(100),
    b"stranger": signature(60),
    b"short": [1.0] * 64,
}


@pytest.fixture
def service(tmp_path):
    db_path = str(tmp_path / "kiosk.db")
    ranker = Ranker(acceleration=AccelerationProvider(enabled=False))
    return KioskService(
        store=InMemoryVectorStore(bit_length=128, ranker=ranker),
        generator=StubSignatureGenerator(CAPTURES),
        ledger=SQLiteAttendanceLedger(db_path, backoff_sec=0),
        directory=SQLiteIdentityDirectory(db_path),
        max_distance=40,
        top_k=5,
    )
