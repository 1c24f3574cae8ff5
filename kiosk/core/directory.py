"""Identity directory: enrolled people and their display metadata."""

import re
import sqlite3
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .db import get_db, init_db
from .errors import CollaboratorError, DuplicateIdentity, InvalidInput

from util.logging import logger

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class Identity:
    id: str
    name: str
    email: str
    created_at: datetime


class IIdentityDirectory(ABC):
    """Abstract interface for the identity directory."""

    @abstractmethod
    def register(self, name: str, email: str) -> Identity:
        pass

    @abstractmethod
    def get(self, identity_id: str) -> Optional[Identity]:
        pass

    @abstractmethod
    def list_identities(self) -> List[Identity]:
        pass

    @abstractmethod
    def delete(self, identity_id: str) -> bool:
        pass


class SQLiteIdentityDirectory(IIdentityDirectory):
    """Directory backed by the ``users`` table."""

    def __init__(self, db_path: str = None):
        self.db_path = db_path
        init_db(db_path)

    def register(self, name: str, email: str) -> Identity:
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email:
            raise InvalidInput("Missing required fields: name and email are required")
        if not EMAIL_PATTERN.match(email):
            raise InvalidInput("Invalid email format")

        identity = Identity(id=str(uuid.uuid4()), name=name, email=email, created_at=datetime.now())
        try:
            with get_db(self.db_path) as conn:
                conn.execute(
                    "INSERT INTO users (id, name, email, created_at) VALUES (?, ?, ?, ?)",
                    (identity.id, identity.name, identity.email, identity.created_at.isoformat())
                )
                conn.commit()
        except sqlite3.IntegrityError:
            raise DuplicateIdentity("User with this email already exists", {"email": email})
        except sqlite3.Error as e:
            raise CollaboratorError(f"Identity directory error: {e}")

        logger.log_operation("directory.register", "success", {"identity_id": identity.id})
        return identity

    def get(self, identity_id: str) -> Optional[Identity]:
        rows = self._select("SELECT id, name, email, created_at FROM users WHERE id = ?", (identity_id,))
        return rows[0] if rows else None

    def list_identities(self) -> List[Identity]:
        """All identities, newest first."""
        return self._select("SELECT id, name, email, created_at FROM users ORDER BY created_at DESC, id", ())

    def delete(self, identity_id: str) -> bool:
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.execute("DELETE FROM users WHERE id = ?", (identity_id,))
                conn.commit()
                deleted = cursor.rowcount > 0
        except sqlite3.Error as e:
            raise CollaboratorError(f"Identity directory error: {e}")

        if deleted:
            logger.log_operation("directory.delete", "success", {"identity_id": identity_id})
        return deleted

    def _select(self, query: str, params) -> List[Identity]:
        try:
            with get_db(self.db_path) as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise CollaboratorError(f"Identity directory error: {e}")

        return [
            Identity(id=row[0], name=row[1], email=row[2], created_at=datetime.fromisoformat(row[3]))
            for row in rows
        ]
