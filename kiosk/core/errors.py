"""
Error taxonomy for the attendance kiosk.

Every failure the core can surface is a KioskError carrying a stable ``kind``
string and a human-readable message. AccelerationUnavailable is absorbed inside
the vector package and never reaches callers of ``query``.
"""

from typing import Any, Dict, Optional


class KioskError(Exception):
    """Base class for typed kiosk failures."""

    kind = "KIOSK_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        result = {"kind": self.kind, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class InvalidInput(KioskError):
    """Empty or malformed raw signature, image or request field."""

    kind = "INVALID_INPUT"


class LengthMismatch(KioskError):
    """Two vectors compared or stored together differ in length."""

    kind = "LENGTH_MISMATCH"

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Vector length mismatch: expected {expected}, got {actual}",
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class EmptyStore(KioskError):
    """A recognition request arrived while no identity is enrolled."""

    kind = "EMPTY_STORE"


class AccelerationUnavailable(KioskError):
    """The accelerated kernel could not be loaded or failed its self-check."""

    kind = "ACCELERATION_UNAVAILABLE"


class SignatureError(KioskError):
    """No usable face or content signal was found in the capture."""

    kind = "SIGNATURE_ERROR"


class CollaboratorError(KioskError):
    """An external collaborator failed with a non-retryable error."""

    kind = "COLLABORATOR_ERROR"


class CollaboratorTimeout(CollaboratorError):
    """An external collaborator did not answer within the bounded timeout."""

    kind = "COLLABORATOR_TIMEOUT"


class IdentityNotFound(KioskError):
    kind = "IDENTITY_NOT_FOUND"


class DuplicateIdentity(KioskError):
    kind = "DUPLICATE_IDENTITY"
