"""
Attendance ledger collaborator.

The ledger is the only place attendance state lives. Entries are append-only;
the most recent entry for an identity determines its current status.
"""

import sqlite3
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .attendance import Action, AttendanceStatus, status_from_action
from .db import get_db, init_db
from .errors import CollaboratorError, CollaboratorTimeout, InvalidInput
from .retry import call_with_retry

from util.logging import logger


@dataclass(frozen=True)
class AttendanceEntry:
    record_id: str
    user_id: str
    action: Action
    timestamp: datetime


class IAttendanceLedger(ABC):
    """Abstract interface for the attendance ledger."""

    @abstractmethod
    def last_status(self, identity_id: str) -> Optional[AttendanceStatus]:
        """Status left by the identity's latest entry, or None if it has none."""
        pass

    @abstractmethod
    def append(self, identity_id: str, action: Action) -> AttendanceEntry:
        pass

    @abstractmethod
    def list_entries(self, user_id: str = None, status: Action = None, limit: int = 50) -> List[AttendanceEntry]:
        """Entries newest first."""
        pass


class SQLiteAttendanceLedger(IAttendanceLedger):
    """Ledger backed by the ``attendance_log`` table."""

    def __init__(self, db_path: str = None, timeout_sec: float = 5.0, max_retries: int = 2,
                 backoff_sec: float = 0.5):
        self.db_path = db_path
        self.timeout_sec = timeout_sec
        self.max_retries = max_retries
        self.backoff_sec = backoff_sec
        init_db(db_path)

    def last_status(self, identity_id: str) -> Optional[AttendanceStatus]:
        row = self._run("last_status", lambda cursor: cursor.execute(
            "SELECT status FROM attendance_log WHERE user_id = ? ORDER BY seq DESC LIMIT 1",
            (identity_id,)
        ).fetchone())
        return status_from_action(row[0]) if row else None

    def append(self, identity_id: str, action: Action) -> AttendanceEntry:
        if not identity_id or not identity_id.strip():
            raise InvalidInput("identity_id is required to log attendance")

        try:
            action = Action(action)
        except ValueError:
            raise InvalidInput(f"Unknown attendance action: {action}")
        entry = AttendanceEntry(
            record_id=str(uuid.uuid4()),
            user_id=identity_id,
            action=action,
            timestamp=datetime.now(),
        )

        def insert(cursor):
            cursor.execute(
                "INSERT INTO attendance_log (id, user_id, status, timestamp) VALUES (?, ?, ?, ?)",
                (entry.record_id, entry.user_id, entry.action.value, entry.timestamp.isoformat())
            )

        self._run("append", insert, commit=True)
        logger.log_attendance(identity_id, action.value, entry.record_id)
        return entry

    def list_entries(self, user_id: str = None, status: Action = None, limit: int = 50) -> List[AttendanceEntry]:
        """Entries newest first, optionally filtered by identity and action."""
        query = "SELECT id, user_id, status, timestamp FROM attendance_log"
        clauses, params = [], []
        if user_id:
            clauses.append("user_id = ?")
            params.append(user_id)
        if status:
            try:
                status = Action(status)
            except ValueError:
                raise InvalidInput(f"Unknown attendance action: {status}")
            clauses.append("status = ?")
            params.append(status.value)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY seq DESC LIMIT ?"
        params.append(limit)

        rows = self._run("list_entries", lambda cursor: cursor.execute(query, params).fetchall())
        return [
            AttendanceEntry(
                record_id=row[0],
                user_id=row[1],
                action=Action(row[2]),
                timestamp=datetime.fromisoformat(row[3]),
            )
            for row in rows
        ]

    def stats(self, user_id: str) -> Dict[str, Any]:
        """Totals and latest timestamps per action for one identity."""
        entries = self.list_entries(user_id=user_id, limit=-1)
        clock_ins = [e for e in entries if e.action is Action.CLOCK_IN]
        clock_outs = [e for e in entries if e.action is Action.CLOCK_OUT]
        return {
            "total_clock_ins": len(clock_ins),
            "total_clock_outs": len(clock_outs),
            "last_clock_in": clock_ins[0].timestamp if clock_ins else None,
            "last_clock_out": clock_outs[0].timestamp if clock_outs else None,
        }

    def _run(self, operation: str, fn, commit: bool = False):
        def attempt():
            try:
                with get_db(self.db_path, timeout=self.timeout_sec) as conn:
                    result = fn(conn.cursor())
                    if commit:
                        conn.commit()
                    return result
            except sqlite3.OperationalError as e:
                if "locked" in str(e) or "busy" in str(e):
                    raise CollaboratorTimeout(f"Attendance ledger busy: {e}")
                raise CollaboratorError(f"Attendance ledger error: {e}")
            except sqlite3.Error as e:
                raise CollaboratorError(f"Attendance ledger error: {e}")

        return call_with_retry("attendance_ledger", operation, attempt,
                               max_retries=self.max_retries, backoff_sec=self.backoff_sec)
