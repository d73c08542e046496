"""SQLite-backed document store using the notes table layout."""

import logging
import os
import sqlite3
from typing import List, Optional

from .base import DocumentStore

logger = logging.getLogger(__name__)

NOTES_SCHEMA = """
    CREATE TABLE IF NOT EXISTS notes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        parent_id INTEGER DEFAULT NULL,
        title TEXT NOT NULL DEFAULT 'Untitled',
        title_emoji TEXT DEFAULT NULL,
        content TEXT DEFAULT '',
        sort_order INTEGER DEFAULT 0,
        is_expanded INTEGER DEFAULT 1,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (parent_id) REFERENCES notes(id) ON DELETE CASCADE
    )
"""


class SqliteDocumentStore(DocumentStore):
    """
    Document store backed by a single SQLite connection.

    One connection is shared by all callers and guarded by the sibling lock,
    which also makes ``":memory:"`` databases usable.
    """

    def __init__(self, database_path: str):
        super().__init__()
        self.database_path = database_path
        db_dir = os.path.dirname(database_path)
        if database_path != ':memory:' and db_dir:
            os.makedirs(db_dir, exist_ok=True)
        self._connection = sqlite3.connect(database_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys=ON")
        self._init_schema()
        logger.debug(f"Opened SQLite document store at {database_path}")

    def _init_schema(self) -> None:
        with self._sibling_lock, self._connection:
            self._connection.execute(NOTES_SCHEMA)
            self._connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_notes_parent ON notes(user_id, parent_id)"
            )

    def max_sibling_sort_order(self, owner_id: int, parent_id: Optional[int]) -> Optional[int]:
        with self._sibling_lock:
            row = self._connection.execute(
                "SELECT MAX(sort_order) AS max_order FROM notes "
                "WHERE user_id = ? AND parent_id IS ?",
                (owner_id, parent_id)
            ).fetchone()
        return row['max_order']

    def create_document(
        self,
        owner_id: int,
        parent_id: Optional[int],
        title: str,
        emoji: Optional[str],
        content: str,
        sort_order: int
    ) -> int:
        with self._sibling_lock, self._connection:
            cursor = self._connection.execute(
                "INSERT INTO notes (user_id, parent_id, title, title_emoji, content, sort_order) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (owner_id, parent_id, title, emoji, content, sort_order)
            )
        return cursor.lastrowid

    def document_exists(self, owner_id: int, document_id: int) -> bool:
        with self._sibling_lock:
            row = self._connection.execute(
                "SELECT id FROM notes WHERE id = ? AND user_id = ?",
                (document_id, owner_id)
            ).fetchone()
        return row is not None

    def list_children(self, owner_id: int, parent_id: Optional[int]) -> List[dict]:
        with self._sibling_lock:
            rows = self._connection.execute(
                "SELECT id, parent_id, title, title_emoji, content, sort_order FROM notes "
                "WHERE user_id = ? AND parent_id IS ? ORDER BY sort_order, id",
                (owner_id, parent_id)
            ).fetchall()
        return [dict(row) for row in rows]

    def close(self) -> None:
        self._connection.close()
