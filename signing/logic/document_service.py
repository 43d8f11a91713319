"""
Document administration: upload, listings, status and deletion.

Admins register documents for a worker; workers see their pending and
signed documents.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from core.helpers.date_time_helper import epoch_millis, utc_now
from core.logging.logic.logger import EventLogger
from signing.adapters.artifact_store import ArtifactStore
from signing.adapters.current_user_provider import CurrentUser, CurrentUserProvider
from signing.exceptions.errors import NotFoundError, SigningError, ValidationError
from signing.logic.naming_strategy import upload_name
from signing.logic.pdf_validator import PdfValidator
from signing.logic.signing_service import coerce_document_id
from signing.models.records import Artifact, Document, DocumentStatus, SignedDocumentView
from signing.models.signature_enums import ArtifactFolder, PdfValidity
from signing.repository.signing_repository import SigningRepository

logger = logging.getLogger(__name__)

_FEATURE_ID = "documents"


@dataclass(frozen=True)
class DocumentStatusInfo:
    document_id: int
    status: DocumentStatus
    has_signed_file: bool
    signed_at: Optional[datetime] = None


class DocumentService:
    def __init__(
        self,
        *,
        repository: SigningRepository,
        store: ArtifactStore,
        user_provider: CurrentUserProvider,
        validator: Optional[PdfValidator] = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        self._repo = repository
        self._store = store
        self._users = user_provider
        self._validator = validator or PdfValidator()
        self._events = event_logger

    def _require_user(self) -> CurrentUser:
        user = self._users.get_current_user()
        if user is None:
            raise ValidationError("Not authenticated")
        return user

    def _require_admin(self) -> CurrentUser:
        user = self._require_user()
        if not user.is_admin:
            raise ValidationError("Only administrators can manage documents")
        return user

    def _event(self, event: str, user: CurrentUser, document_id: int, message: str) -> None:
        if self._events is None:
            return
        try:
            self._events.log(_FEATURE_ID, event, user_id=user.id, username=user.name,
                             reference_id=str(document_id), message=message)
        except sqlite3.Error as ex:
            logger.warning(f"Could not record event '{event}' for document {document_id}: {ex}")

    # ------------------------------------------------------------------ #
    def register_document(self, *, title: str, description: Optional[str], worker_id: int,
                          filename: str, data: bytes) -> Document:
        """Store an uploaded PDF and create a pending document for ``worker_id``."""
        admin = self._require_admin()
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required")
        if not data:
            raise ValidationError("No file uploaded")

        validation = self._validator.validate(data)
        if validation.validity is PdfValidity.MALFORMED:
            raise ValidationError(f"Uploaded file is not a PDF: {validation.reason}")
        if not validation.processable:
            # still accepted: signing falls back to an attestation document
            logger.warning(f"Registering '{title}' although it cannot be processed: {validation.reason}")

        locator = self._store.save(
            upload_name(filename or title, epoch_millis(utc_now())),
            data,
            folder=ArtifactFolder.DOCUMENTS,
        )
        try:
            document = self._repo.create_document(
                title=title,
                description=description,
                file_path=locator,
                admin_id=admin.id,
                worker_id=int(worker_id),
            )
        except sqlite3.Error:
            self._store.delete(locator)
            raise

        self._event("document_registered", admin, document.id, f"'{title}' -> worker {worker_id}")
        return document

    def list_documents(self) -> List[Tuple[Document, Optional[SignedDocumentView]]]:
        """All documents of the calling admin with their signing details."""
        admin = self._require_admin()
        return self._repo.list_documents_for_admin(admin.id)

    def list_pending(self) -> List[SignedDocumentView]:
        user = self._require_user()
        return self._repo.list_documents_for_worker(user.id, DocumentStatus.PENDING)

    def list_signed(self) -> List[SignedDocumentView]:
        user = self._require_user()
        return self._repo.list_documents_for_worker(user.id, DocumentStatus.SIGNED)

    def _find_visible(self, document_id: object) -> Document:
        """The document if the caller is its admin or its worker."""
        doc_id = coerce_document_id(document_id)
        user = self._require_user()
        if user.is_admin:
            document = self._repo.find_document_for_admin(doc_id, user.id)
        else:
            document = self._repo.find_document_for_worker(doc_id, user.id)
        if document is None:
            raise NotFoundError(f"Document {doc_id} not found")
        return document

    def check_document_status(self, document_id: object) -> DocumentStatusInfo:
        """Status of a document visible to the caller (its admin or its worker)."""
        document = self._find_visible(document_id)
        doc_id = document.id

        link = self._repo.get_document_signature(doc_id)
        return DocumentStatusInfo(
            document_id=doc_id,
            status=document.status,
            has_signed_file=link is not None and self._store.exists(link.signed_artifact_ref),
            signed_at=link.signed_at if link else None,
        )

    def get_document_artifact(self, document_id: object) -> Artifact:
        """
        The file to hand out for a document: the signed artifact once the
        document is signed, the uploaded original otherwise.

        Raises:
            NotFoundError: unknown id or not visible to the caller
            ArtifactUnavailable: the locator no longer resolves
        """
        document = self._find_visible(document_id)
        link = self._repo.get_document_signature(document.id)
        if document.status is DocumentStatus.SIGNED and link is not None:
            locator = link.signed_artifact_ref
        else:
            locator = document.original_artifact_ref
        artifact = self._store.fetch(locator)
        logger.debug(f"Serving {locator} for document {document.id}")
        return artifact

    def delete_document(self, document_id: object) -> None:
        """Delete the document, its signature link and both artifacts."""
        doc_id = coerce_document_id(document_id)
        admin = self._require_admin()
        document = self._repo.find_document_for_admin(doc_id, admin.id)
        if document is None:
            raise NotFoundError(f"Document {doc_id} not found")

        link = self._repo.get_document_signature(doc_id)
        if not self._repo.delete_document(doc_id):
            raise NotFoundError(f"Document {doc_id} not found")

        for locator in (document.original_artifact_ref, link.signed_artifact_ref if link else None):
            if not locator:
                continue
            try:
                self._store.delete(locator)
            except (SigningError, OSError, sqlite3.Error) as ex:
                logger.warning(f"Could not delete artifact {locator} of document {doc_id}: {ex}")

        self._event("document_deleted", admin, doc_id, f"'{document.title}'")
        logger.info(f"Deleted document {doc_id}")
