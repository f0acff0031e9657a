"""SQLite-backed document metadata repository."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from lecturebot.errors import DuplicateDocument, StorageFailed
from lecturebot.models import DocumentRecord


class DocStore:
    """Stores one row per uploaded document, unique by content hash."""

    def __init__(self, db_path: str = "./data/docstore.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._init_tables()

    def _init_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS documents (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                content_hash  TEXT NOT NULL,
                storage_key   TEXT NOT NULL,
                original_name TEXT NOT NULL DEFAULT '',
                description   TEXT NOT NULL DEFAULT '',
                sender_id     TEXT NOT NULL,
                created_at    TEXT NOT NULL
            );
            CREATE UNIQUE INDEX IF NOT EXISTS idx_doc_hash ON documents(content_hash);
        """)
        self._conn.commit()

    # -- Documents -----------------------------------------------------------

    def insert(self, record: DocumentRecord) -> DocumentRecord:
        """Insert a record and return it with its assigned id.

        Raises DuplicateDocument if the content hash is already stored.
        """
        try:
            cursor = self._conn.execute(
                """
                INSERT INTO documents
                    (content_hash, storage_key, original_name, description, sender_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.content_hash,
                    record.storage_key,
                    record.original_name,
                    record.description,
                    record.sender_id,
                    record.created_at.isoformat(),
                ),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise DuplicateDocument(record.content_hash) from exc
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StorageFailed(f"Insert failed: {exc}") from exc
        return record.model_copy(update={"id": cursor.lastrowid})

    def get(self, doc_id: int) -> DocumentRecord | None:
        """Fetch a record by id."""
        row = self._fetchone("SELECT * FROM documents WHERE id = ?", (doc_id,))
        return self._row_to_record(row) if row else None

    def get_by_hash(self, content_hash: str) -> DocumentRecord | None:
        """Fetch the record stored for a content hash, if any."""
        row = self._fetchone(
            "SELECT * FROM documents WHERE content_hash = ?", (content_hash,)
        )
        return self._row_to_record(row) if row else None

    def list_documents(self) -> list[DocumentRecord]:
        """List all records in insertion order."""
        try:
            rows = self._conn.execute("SELECT * FROM documents ORDER BY id").fetchall()
        except sqlite3.Error as exc:
            raise StorageFailed(f"Listing documents failed: {exc}") from exc
        return [self._row_to_record(r) for r in rows]

    def count(self) -> int:
        row = self._fetchone("SELECT COUNT(*) AS n FROM documents", ())
        return row["n"]

    # -- Lifecycle -----------------------------------------------------------

    def close(self) -> None:
        self._conn.close()

    # -- Helpers -------------------------------------------------------------

    def _fetchone(self, sql: str, params: tuple) -> sqlite3.Row | None:
        try:
            return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise StorageFailed(f"Query failed: {exc}") from exc

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> DocumentRecord:
        return DocumentRecord(
            id=row["id"],
            content_hash=row["content_hash"],
            storage_key=row["storage_key"],
            original_name=row["original_name"],
            description=row["description"],
            sender_id=row["sender_id"],
            created_at=row["created_at"],
        )
