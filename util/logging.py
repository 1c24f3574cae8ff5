"""Structured logging utility for the attendance kiosk."""

import logging
from typing import Any, Dict, List

SENSITIVE_FIELDS = ['image', 'raw_image', 'face_image', 'signature', 'embedding', 'vector']


class StructuredLogger:
    """Structured logger for store, ranking, decision and collaborator operations."""

    def __init__(self, name: str = "attendance_kiosk"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error"):
            self.logger.error(message)
        elif status in ("degraded", "retrying"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_store_operation(self, operation: str, record_id: str = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector store mutation."""
        log_details = {}
        if record_id is not None:
            log_details["record_id"] = record_id
        if details:
            log_details.update(details)

        self.log_operation(f"store.{operation}", status, log_details)

    def log_query(self, candidates: int, returned: int, top_k: int, path: str, best_distance: int = None):
        """Log a ranking query."""
        log_details = {
            "candidates": candidates,
            "returned": returned,
            "top_k": top_k,
            "path": path,
        }
        if best_distance is not None:
            log_details["best_distance"] = best_distance

        self.log_operation("ranker.query", "success", log_details)

    def log_decision(self, matched: bool, distance: int, threshold: int, record_id: str = None):
        """Log a match decision."""
        log_details = {
            "matched": matched,
            "distance": distance,
            "threshold": threshold,
        }
        if record_id is not None:
            log_details["record_id"] = record_id

        self.log_operation("decision", "matched" if matched else "rejected", log_details)

    def log_attendance(self, identity_id: str, action: str, record_id: str = None, status: str = "success"):
        """Log an attendance ledger append."""
        log_details = {"identity_id": identity_id, "action": action}
        if record_id is not None:
            log_details["record_id"] = record_id

        self.log_operation("attendance.append", status, log_details)

    def log_collaborator_call(self, collaborator: str, operation: str, attempt: int, status: str = "success", details: Dict[str, Any] = None):
        """Log a call to an external collaborator."""
        log_details = {"collaborator": collaborator, "attempt": attempt}
        if details:
            log_details.update(sanitize_payload(details))

        self.log_operation(f"collaborator.{operation}", status, log_details)

    def log_acceleration(self, status: str, details: Dict[str, Any] = None):
        """Log the outcome of an accelerated kernel load attempt."""
        self.log_operation("acceleration.load", status, details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads before they are logged."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
