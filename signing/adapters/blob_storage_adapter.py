"""Database-table implementation of ArtifactBackend.

Used in managed deployments without a writable filesystem. Bytes are kept
base64-encoded in ``document_files``; the locator is an API-style path
``<prefix>/<id>`` that an external HTTP layer serves.
"""

from __future__ import annotations

import base64
import binascii
import logging
import sqlite3

from core.helpers.date_time_helper import utc_now_iso
from signing.adapters.database_adapter import DatabaseAdapter
from signing.adapters.storage_adapter import ArtifactBackend
from signing.exceptions.errors import ArtifactUnavailable, PersistenceFailure
from signing.models.records import ArtifactBackendKind
from signing.models.signature_enums import ArtifactFolder

logger = logging.getLogger(__name__)

DEFAULT_BLOB_PREFIX = "/api/document-files"


class BlobArtifactBackend(ArtifactBackend):
    """Stores artifacts as rows of the ``document_files`` table."""

    kind = ArtifactBackendKind.BLOB

    def __init__(self, db: DatabaseAdapter, *, prefix: str = DEFAULT_BLOB_PREFIX) -> None:
        self._db = db
        self._prefix = prefix.rstrip("/") + "/"
        self._ensure_schema()

    @property
    def prefix(self) -> str:
        return self._prefix

    def _ensure_schema(self) -> None:
        self._db.executescript(
            """
            CREATE TABLE IF NOT EXISTS document_files (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                file_name TEXT NOT NULL,
                content_type TEXT NOT NULL DEFAULT 'application/pdf',
                content TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )

    # ------------------------------------------------------------------ #
    def owns(self, locator: str) -> bool:
        return locator.startswith(self._prefix)

    def _file_id(self, locator: str) -> int:
        if not self.owns(locator):
            raise ArtifactUnavailable(locator, "not a blob locator")
        token = locator[len(self._prefix):]
        if not (token.isascii() and token.isdigit()):
            raise ArtifactUnavailable(locator, "invalid file id")
        return int(token)

    def save(self, name: str, data: bytes, *, folder: ArtifactFolder,
             content_type: str = "application/pdf") -> str:
        encoded = base64.b64encode(data).decode("ascii")
        try:
            file_id = self._db.insert(
                "document_files",
                {
                    "file_name": name,
                    "content_type": content_type,
                    "content": encoded,
                    "created_at": utc_now_iso(),
                },
            )
        except sqlite3.Error as ex:
            raise PersistenceFailure(f"Could not store artifact {name}: {ex}") from ex

        locator = f"{self._prefix}{file_id}"
        logger.info(f"Stored {len(data)} bytes as {locator} ({folder.value}/{name})")
        return locator

    def load(self, locator: str) -> bytes:
        file_id = self._file_id(locator)
        try:
            row = self._db.fetchone("SELECT content FROM document_files WHERE id = ?", (file_id,))
        except sqlite3.Error as ex:
            raise ArtifactUnavailable(locator, str(ex)) from ex
        if row is None:
            raise ArtifactUnavailable(locator, "no such file row")
        try:
            return base64.b64decode(row["content"], validate=True)
        except (binascii.Error, ValueError) as ex:
            raise ArtifactUnavailable(locator, "stored content is not valid base64") from ex

    def content_type(self, locator: str) -> str:
        file_id = self._file_id(locator)
        row = self._db.fetchone("SELECT content_type FROM document_files WHERE id = ?", (file_id,))
        if row is None:
            raise ArtifactUnavailable(locator, "no such file row")
        return row["content_type"]

    def exists(self, locator: str) -> bool:
        try:
            file_id = self._file_id(locator)
        except ArtifactUnavailable:
            return False
        return self._db.fetchone("SELECT 1 AS hit FROM document_files WHERE id = ?", (file_id,)) is not None

    def delete(self, locator: str) -> bool:
        try:
            file_id = self._file_id(locator)
        except ArtifactUnavailable:
            return False
        return self._db.delete("document_files", "id = ?", (file_id,)) > 0
