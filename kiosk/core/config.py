"""Configuration management for the attendance kiosk."""

import os
from pathlib import Path

# Database path configuration (identity directory and attendance ledger)
DB_PATH = os.getenv("DB_PATH", "./data/kiosk.db")

DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Similarity index configuration
SIGNATURE_BITS = int(os.getenv("SIGNATURE_BITS", "128"))
BINARIZE_THRESHOLD = float(os.getenv("BINARIZE_THRESHOLD", "0.0"))
# Calibrate against real enrollment/probe pairs before relying on this default
MAX_HAMMING_DISTANCE = int(os.getenv("MAX_HAMMING_DISTANCE", "40"))
QUERY_TOP_K = int(os.getenv("QUERY_TOP_K", "5"))
ACCELERATION_ENABLED = os.getenv("ACCELERATION_ENABLED", "true").lower() == "true"

# Signature generator collaborator
SIGNATURE_PROVIDER = os.getenv("SIGNATURE_PROVIDER", "hash")  # hash|remote
TOOL_SERVER_URL = os.getenv("TOOL_SERVER_URL", "http://localhost:3001")

# Collaborator timeout and retry policy
COLLABORATOR_TIMEOUT_SEC = float(os.getenv("COLLABORATOR_TIMEOUT_SEC", "300"))
COLLABORATOR_MAX_RETRIES = int(os.getenv("COLLABORATOR_MAX_RETRIES", "2"))
COLLABORATOR_BACKOFF_SEC = float(os.getenv("COLLABORATOR_BACKOFF_SEC", "0.5"))

VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def get_acceleration_provider():
    """Get the accelerated-kernel provider. Loading is deferred to first use."""
    from ..vector.acceleration import AccelerationProvider
    return AccelerationProvider(enabled=ACCELERATION_ENABLED)


def get_signature_generator():
    """Get configured signature generator implementation."""
    if SIGNATURE_PROVIDER == "remote":
        from .signatures import RemoteSignatureGenerator
        from .tool_client import ToolClient
        client = ToolClient(
            base_url=TOOL_SERVER_URL,
            timeout_sec=COLLABORATOR_TIMEOUT_SEC,
            max_retries=COLLABORATOR_MAX_RETRIES,
            backoff_sec=COLLABORATOR_BACKOFF_SEC,
        )
        return RemoteSignatureGenerator(client)

    # Default to the deterministic generator for unknown providers
    from .signatures import DeterministicHashSignatureGenerator
    return DeterministicHashSignatureGenerator(dimension=SIGNATURE_BITS)


def validate_config():
    """Validate kiosk configuration and return any issues."""
    issues = []

    if SIGNATURE_BITS < 1:
        issues.append("SIGNATURE_BITS must be >= 1")
    elif SIGNATURE_BITS % 8 != 0:
        issues.append("SIGNATURE_BITS must be a multiple of 8")

    if MAX_HAMMING_DISTANCE < 0:
        issues.append("MAX_HAMMING_DISTANCE must be >= 0")
    elif MAX_HAMMING_DISTANCE > SIGNATURE_BITS:
        issues.append("MAX_HAMMING_DISTANCE exceeds SIGNATURE_BITS; every probe would match")

    if QUERY_TOP_K < 1:
        issues.append("QUERY_TOP_K must be >= 1")

    if SIGNATURE_PROVIDER not in ["hash", "remote"]:
        issues.append(f"Invalid SIGNATURE_PROVIDER: {SIGNATURE_PROVIDER}")

    if COLLABORATOR_TIMEOUT_SEC <= 0:
        issues.append("COLLABORATOR_TIMEOUT_SEC must be > 0")

    if COLLABORATOR_MAX_RETRIES < 0:
        issues.append("COLLABORATOR_MAX_RETRIES must be >= 0")

    return issues
