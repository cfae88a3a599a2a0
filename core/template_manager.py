"""
Template Manager Module

This module handles persistence and retrieval of identity templates for the
development identity server.

Each template is one averaged 128-d face descriptor stored in SQLite as a
float32 blob, keyed by the identity name.

The TemplateManager class provides CRUD operations:
- save_template: Store a newly enrolled identity
- load_template: Load a single identity's template
- load_all_templates: Load all enrolled templates (for 1:N identification)
- delete_template: Remove an identity
- list_users: List all enrolled identities in enrollment order

Usage:
    from core.template_manager import TemplateManager, IdentityTemplate

    manager = TemplateManager(db_path="storage/identities.sqlite")
    manager.save_template(IdentityTemplate(name="Alice", descriptor=template))
    users = manager.list_users()
"""

import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from core.observation import EMBEDDING_DIM

logger = logging.getLogger(__name__)


@dataclass
class IdentityTemplate:
    """
    An enrolled identity.

    Attributes:
        name: Identity label, unique across the store.
        descriptor: Averaged face descriptor, shape (EMBEDDING_DIM,), float32.
        enrolled_at: ISO timestamp, filled in on save when empty.
    """

    name: str
    descriptor: np.ndarray
    enrolled_at: str = field(default="")

    def __post_init__(self):
        self.descriptor = np.asarray(self.descriptor, dtype=np.float32).ravel()
        assert self.descriptor.shape == (EMBEDDING_DIM,), \
            f"descriptor must be ({EMBEDDING_DIM},), got {self.descriptor.shape}"
        assert self.name, "name must not be empty"


class TemplateManager:
    """
    Manages persistence and retrieval of identity templates.

    The connection is shared between the server's worker threads, so every
    operation runs under one lock.

    Attributes:
        db_path: Path to the SQLite database file (":memory:" for tests).
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._init_database()
        logger.info(f"TemplateManager initialized: db={self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get or create the SQLite connection.

        Returns:
            SQLite connection with Row factory for dict-like access.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute("""
                CREATE TABLE IF NOT EXISTS identities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    descriptor BLOB NOT NULL,
                    enrolled_at TEXT NOT NULL
                )
            """)
            conn.commit()
        logger.debug("Database schema initialized")

    @staticmethod
    def _row_to_template(row: sqlite3.Row) -> IdentityTemplate:
        return IdentityTemplate(
            name=row["name"],
            descriptor=np.frombuffer(row["descriptor"], dtype=np.float32).copy(),
            enrolled_at=row["enrolled_at"],
        )

    def save_template(self, template: IdentityTemplate) -> IdentityTemplate:
        """
        Store a new identity.

        Raises:
            ValueError: If an identity with this name already exists.
        """
        if not template.enrolled_at:
            template.enrolled_at = datetime.now().isoformat()

        with self._lock:
            conn = self._get_connection()
            try:
                conn.execute(
                    "INSERT INTO identities (name, descriptor, enrolled_at) VALUES (?, ?, ?)",
                    (template.name, template.descriptor.tobytes(), template.enrolled_at),
                )
            except sqlite3.IntegrityError:
                raise ValueError(f"User '{template.name}' already exists")
            conn.commit()

        logger.info(f"Saved template for {template.name}")
        return template

    def load_template(self, name: str) -> Optional[IdentityTemplate]:
        """Load one identity, or None if it is not enrolled."""
        with self._lock:
            row = self._get_connection().execute(
                "SELECT name, descriptor, enrolled_at FROM identities WHERE name = ?",
                (name,),
            ).fetchone()
        return self._row_to_template(row) if row is not None else None

    def load_all_templates(self) -> List[IdentityTemplate]:
        """Load every enrolled identity, in enrollment order."""
        with self._lock:
            rows = self._get_connection().execute(
                "SELECT name, descriptor, enrolled_at FROM identities ORDER BY id"
            ).fetchall()
        return [self._row_to_template(row) for row in rows]

    def delete_template(self, name: str) -> bool:
        """
        Delete an identity.

        Returns:
            True if deleted, False if the name was not enrolled.
        """
        with self._lock:
            conn = self._get_connection()
            cursor = conn.execute("DELETE FROM identities WHERE name = ?", (name,))
            conn.commit()

        if cursor.rowcount == 0:
            logger.warning(f"Cannot delete: user {name} not found")
            return False

        logger.info(f"Deleted template for user {name}")
        return True

    def list_users(self) -> List[Dict[str, Any]]:
        """
        List all enrolled identities in enrollment order.

        Returns:
            List of dictionaries with name and enrolled_at.
        """
        with self._lock:
            rows = self._get_connection().execute(
                "SELECT name, enrolled_at FROM identities ORDER BY id"
            ).fetchall()
        return [{"name": row["name"], "enrolled_at": row["enrolled_at"]} for row in rows]

    def user_exists(self, name: str) -> bool:
        with self._lock:
            row = self._get_connection().execute(
                "SELECT 1 FROM identities WHERE name = ?", (name,)
            ).fetchone()
        return row is not None

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the template database."""
        with self._lock:
            row = self._get_connection().execute(
                "SELECT COUNT(*) AS count FROM identities"
            ).fetchone()
        return {"total_users": row["count"] or 0}

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Database connection closed")


# Singleton instance for the manager
_manager_instance: Optional[TemplateManager] = None


def get_template_manager(db_path: Optional[str] = None) -> TemplateManager:
    """
    Get or create the singleton TemplateManager instance.

    Args:
        db_path: Path to SQLite database. If None, uses the value from config
                 (relative to the project root).

    Returns:
        The shared TemplateManager instance.
    """
    global _manager_instance

    if _manager_instance is None:
        if db_path is None:
            from core.config import get_project_root, get_storage_config

            db_path = str(get_project_root() / get_storage_config()["db_path"])

        _manager_instance = TemplateManager(db_path)

    return _manager_instance
