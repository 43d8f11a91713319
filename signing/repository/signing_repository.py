"""SQLite repository for documents, worker signatures and signature links.

Lightweight: CRUD and the single atomic signing write. Business rules live
in the services layer.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional, Tuple

from core.helpers.date_time_helper import to_utc_iso, utc_now_iso
from signing.adapters.database_adapter import DatabaseAdapter
from signing.exceptions.errors import AlreadySigned, NotFoundError, PersistenceFailure
from signing.models.records import (
    Document,
    DocumentSignature,
    DocumentStatus,
    SignedDocumentView,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    file_path TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'signed', 'expired')),
    admin_id INTEGER NOT NULL,
    worker_id INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS worker_signatures (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    worker_id INTEGER NOT NULL UNIQUE,
    signature_data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS document_signatures (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id INTEGER NOT NULL UNIQUE REFERENCES documents(id) ON DELETE CASCADE,
    worker_id INTEGER NOT NULL,
    signature_id INTEGER NOT NULL REFERENCES worker_signatures(id),
    signed_file_path TEXT NOT NULL,
    signed_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_documents_worker_status ON documents(worker_id, status);
CREATE INDEX IF NOT EXISTS idx_documents_admin ON documents(admin_id);
"""

_JOINED_SELECT = """
    SELECT d.id, d.title, d.status, ds.signed_file_path, ds.signed_at
    FROM documents d
    LEFT JOIN document_signatures ds ON d.id = ds.document_id
"""


class SigningRepository:
    """SQLite backend for the signing feature.

    Stored signatures are persisted exactly as handed in; encryption is the
    caller's concern.
    """

    def __init__(self, db: DatabaseAdapter) -> None:
        self._db = db
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self._db.executescript(_SCHEMA)

    # =========================================================================
    # Documents
    # =========================================================================

    def create_document(self, *, title: str, description: Optional[str], file_path: str,
                        admin_id: int, worker_id: int) -> Document:
        now = utc_now_iso()
        doc_id = self._db.insert(
            "documents",
            {
                "title": title,
                "description": description,
                "file_path": file_path,
                "status": DocumentStatus.PENDING.value,
                "admin_id": admin_id,
                "worker_id": worker_id,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info(f"Created document {doc_id} '{title}' for worker {worker_id}")
        return self.get_document(doc_id)

    def get_document(self, document_id: int) -> Document:
        row = self._db.fetchone("SELECT * FROM documents WHERE id = ?", (document_id,))
        if row is None:
            raise NotFoundError(f"Document {document_id} not found")
        return Document.from_row(row)

    def find_document_for_worker(self, document_id: int, worker_id: int) -> Optional[Document]:
        row = self._db.fetchone(
            "SELECT * FROM documents WHERE id = ? AND worker_id = ?", (document_id, worker_id)
        )
        return Document.from_row(row) if row else None

    def find_document_for_admin(self, document_id: int, admin_id: int) -> Optional[Document]:
        row = self._db.fetchone(
            "SELECT * FROM documents WHERE id = ? AND admin_id = ?", (document_id, admin_id)
        )
        return Document.from_row(row) if row else None

    def list_documents_for_admin(self, admin_id: int) -> List[Tuple[Document, Optional[SignedDocumentView]]]:
        rows = self._db.fetchall(
            """
            SELECT d.*, ds.signed_file_path, ds.signed_at
            FROM documents d
            LEFT JOIN document_signatures ds ON d.id = ds.document_id
            WHERE d.admin_id = ?
            ORDER BY d.created_at DESC, d.id DESC
            """,
            (admin_id,),
        )
        return [(Document.from_row(r), SignedDocumentView.from_row(r)) for r in rows]

    def list_documents_for_worker(self, worker_id: int, status: DocumentStatus) -> List[SignedDocumentView]:
        rows = self._db.fetchall(
            _JOINED_SELECT + " WHERE d.worker_id = ? AND d.status = ? ORDER BY d.created_at DESC, d.id DESC",
            (worker_id, status.value),
        )
        return [SignedDocumentView.from_row(r) for r in rows]

    def get_signed_view(self, document_id: int) -> Optional[SignedDocumentView]:
        row = self._db.fetchone(_JOINED_SELECT + " WHERE d.id = ?", (document_id,))
        return SignedDocumentView.from_row(row) if row else None

    def get_document_signature(self, document_id: int) -> Optional[DocumentSignature]:
        row = self._db.fetchone(
            "SELECT * FROM document_signatures WHERE document_id = ?", (document_id,)
        )
        return DocumentSignature.from_row(row) if row else None

    def delete_document(self, document_id: int) -> bool:
        """Delete the document; the signature link goes with it (ON DELETE CASCADE)."""
        try:
            with self._db.transaction():
                deleted = self._db.delete("documents", "id = ?", (document_id,))
        except sqlite3.Error as ex:
            raise PersistenceFailure(f"Could not delete document {document_id}: {ex}") from ex
        return deleted > 0

    # =========================================================================
    # Worker signatures
    # =========================================================================

    def get_worker_signature(self, worker_id: int) -> Optional[dict]:
        """Raw row (id, worker_id, signature_data, updated_at) or None."""
        return self._db.fetchone(
            "SELECT id, worker_id, signature_data, updated_at FROM worker_signatures "
            "WHERE worker_id = ? ORDER BY updated_at DESC LIMIT 1",
            (worker_id,),
        )

    def upsert_worker_signature(self, worker_id: int, signature_data: str) -> int:
        """Create or replace the worker's reusable signature; returns its id."""
        now = utc_now_iso()
        try:
            with self._db.transaction():
                self._db.execute(
                    """
                    INSERT INTO worker_signatures (worker_id, signature_data, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(worker_id) DO UPDATE SET
                        signature_data = excluded.signature_data,
                        updated_at = excluded.updated_at
                    """,
                    (worker_id, signature_data, now, now),
                )
                row = self._db.fetchone(
                    "SELECT id FROM worker_signatures WHERE worker_id = ?", (worker_id,)
                )
        except sqlite3.Error as ex:
            raise PersistenceFailure(f"Could not save signature for worker {worker_id}: {ex}") from ex
        return int(row["id"])

    # =========================================================================
    # Signing transaction
    # =========================================================================

    def commit_signature(
        self,
        *,
        document_id: int,
        worker_id: int,
        signature_data: str,
        signed_file_path: str,
        signed_at: datetime,
    ) -> DocumentSignature:
        """
        In one transaction:
          (a) insert the worker's signature if it does not exist yet,
          (b) insert or update the document's signature link,
          (c) flip the document to 'signed' only if it is still 'pending'.

        Raises:
            AlreadySigned: (c) matched no row because another call won; nothing is written
            NotFoundError: the document vanished in the meantime
            PersistenceFailure: any database error; nothing is written
        """
        signed_at_iso = to_utc_iso(signed_at)
        try:
            with self._db.transaction():
                self._db.execute(
                    """
                    INSERT INTO worker_signatures (worker_id, signature_data, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(worker_id) DO NOTHING
                    """,
                    (worker_id, signature_data, signed_at_iso, signed_at_iso),
                )
                sig_row = self._db.fetchone(
                    "SELECT id FROM worker_signatures WHERE worker_id = ?", (worker_id,)
                )
                signature_id = int(sig_row["id"])

                self._db.execute(
                    """
                    INSERT INTO document_signatures
                        (document_id, worker_id, signature_id, signed_file_path, signed_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(document_id) DO UPDATE SET
                        worker_id = excluded.worker_id,
                        signature_id = excluded.signature_id,
                        signed_file_path = excluded.signed_file_path,
                        signed_at = excluded.signed_at
                    """,
                    (document_id, worker_id, signature_id, signed_file_path, signed_at_iso),
                )

                flipped = self._db.update(
                    "documents",
                    {"status": DocumentStatus.SIGNED.value, "updated_at": signed_at_iso},
                    "id = ? AND status = ?",
                    (document_id, DocumentStatus.PENDING.value),
                )
                if flipped != 1:
                    current = self._db.fetchone("SELECT status FROM documents WHERE id = ?", (document_id,))
                    if current is None:
                        raise NotFoundError(f"Document {document_id} not found")
                    raise AlreadySigned(document_id)
        except (AlreadySigned, NotFoundError):
            logger.info(f"Signing write for document {document_id} rolled back")
            raise
        except sqlite3.Error as ex:
            raise PersistenceFailure(f"Could not record signature for document {document_id}: {ex}") from ex

        logger.info(f"Document {document_id} signed by worker {worker_id} -> {signed_file_path}")
        return DocumentSignature(
            document_id=document_id,
            worker_id=worker_id,
            signature_id=signature_id,
            signed_artifact_ref=signed_file_path,
            signed_at=signed_at.replace(microsecond=0),
        )
