# signing/logic/signing_service.py
"""
Document signing service.

``sign_document`` drives one document from ``pending`` to ``signed``:

    load original -> validate -> overlay (strategy chain)
        -> fallback attestation if any of these fails
        -> save artifact -> atomic record write -> verify

Domain exceptions are raised inside the components and turned into a
``SignDocumentResult`` here; callers never see them.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Optional, Union

from cryptography.fernet import InvalidToken

from core.helpers.date_time_helper import epoch_millis, parse_utc_iso, utc_now
from core.logging.logic.logger import EventLogger
from signing.adapters.artifact_store import ArtifactStore
from signing.adapters.current_user_provider import CurrentUser, CurrentUserProvider
from signing.exceptions.errors import (
    AlreadySigned,
    ArtifactUnavailable,
    NoSignatureError,
    NotFoundError,
    PersistenceFailure,
    ProcessingFailure,
    SigningError,
    ValidationError,
    VerificationFailure,
)
from signing.logic.encryption import SignatureVault
from signing.logic.fallback_document import FallbackDocumentSynthesizer
from signing.logic.naming_strategy import DefaultPrefixStrategy, NamingContext, NamingStrategy
from signing.logic.pdf_signer import PdfSigningEngine
from signing.logic.pdf_validator import PdfValidator
from signing.logic.status_verifier import StatusVerifier
from signing.models.records import Document, DocumentStatus, SignatureRecord
from signing.models.signature_enums import ArtifactFolder, SignOutcome
from signing.models.signature_payload import SignaturePayload
from signing.models.signing_result import SignDocumentResult
from signing.repository.signing_repository import SigningRepository

logger = logging.getLogger(__name__)

_FEATURE_ID = "signing"
MIN_SIGNATURE_LENGTH = 2

SignatureInput = Union[str, bytes, None]


def coerce_document_id(value: object) -> int:
    """Document ids are positive integers; anything else cannot exist."""
    if isinstance(value, bool):
        raise NotFoundError(f"Invalid document id: {value!r}")
    if isinstance(value, int):
        doc_id = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        doc_id = int(value.strip())
    else:
        raise NotFoundError(f"Invalid document id: {value!r}")
    if doc_id <= 0:
        raise NotFoundError(f"Invalid document id: {value!r}")
    return doc_id


class DocumentSigningService:
    def __init__(
        self,
        *,
        repository: SigningRepository,
        store: ArtifactStore,
        user_provider: CurrentUserProvider,
        validator: Optional[PdfValidator] = None,
        engine: Optional[PdfSigningEngine] = None,
        synthesizer: Optional[FallbackDocumentSynthesizer] = None,
        verifier: Optional[StatusVerifier] = None,
        vault: Optional[SignatureVault] = None,
        event_logger: Optional[EventLogger] = None,
        naming: Optional[NamingStrategy] = None,
    ) -> None:
        self._repo = repository
        self._store = store
        self._users = user_provider
        self._validator = validator or PdfValidator()
        self._engine = engine or PdfSigningEngine()
        self._synthesizer = synthesizer or FallbackDocumentSynthesizer()
        self._verifier = verifier or StatusVerifier(repository, store)
        self._vault = vault
        self._events = event_logger
        self._naming = naming or DefaultPrefixStrategy()

    # =========================================================================
    # Stored signatures
    # =========================================================================

    def _seal(self, payload: SignaturePayload) -> str:
        return self._vault.encrypt(payload.raw) if self._vault else payload.raw

    def _unseal(self, stored: str) -> str:
        return self._vault.decrypt(stored) if self._vault else stored

    def _require_user(self) -> CurrentUser:
        user = self._users.get_current_user()
        if user is None:
            raise ValidationError("Not authenticated")
        return user

    def get_worker_signature(self) -> Optional[SignatureRecord]:
        """The calling worker's reusable signature, decrypted, or None."""
        return self._stored_signature(self._require_user().id)

    def _stored_signature(self, worker_id: int) -> Optional[SignatureRecord]:
        row = self._repo.get_worker_signature(worker_id)
        if row is None:
            return None
        try:
            payload = self._unseal(row["signature_data"])
        except InvalidToken:
            logger.error(f"Stored signature of worker {worker_id} cannot be decrypted")
            return None
        return SignatureRecord(
            id=int(row["id"]),
            worker_id=int(row["worker_id"]),
            payload=payload,
            updated_at=parse_utc_iso(row["updated_at"]),
        )

    def save_worker_signature(self, signature_data: SignatureInput) -> SignatureRecord:
        """Create or replace the calling worker's reusable signature."""
        user = self._require_user()
        if SignaturePayload.is_trivial(signature_data):
            raise ValidationError("Signature is empty or too short")
        payload = SignaturePayload.parse(signature_data)
        signature_id = self._repo.upsert_worker_signature(user.id, self._seal(payload))
        logger.info(f"Saved reusable signature for worker {user.id}")
        return SignatureRecord(id=signature_id, worker_id=user.id, payload=payload.raw, updated_at=utc_now())

    def _resolve_payload(self, user: CurrentUser, signature_data: SignatureInput) -> SignaturePayload:
        """Explicit payload if usable, else the stored one."""
        if not SignaturePayload.is_trivial(signature_data):
            payload = SignaturePayload.parse(signature_data)
        else:
            record = self._stored_signature(user.id)
            if record is None:
                raise NoSignatureError("No signature provided and none stored for this worker")
            payload = SignaturePayload.parse(record.payload)

        if len(payload.raw) < MIN_SIGNATURE_LENGTH:
            raise ValidationError("Invalid signature")
        return payload

    # =========================================================================
    # Signing
    # =========================================================================

    def _produce_signed_bytes(self, document: Document, signer: str,
                              payload: SignaturePayload) -> tuple[bytes, bool, Optional[str]]:
        """Returns (pdf bytes, used_fallback, strategy name)."""
        try:
            original = self._store.load(document.original_artifact_ref)
        except ArtifactUnavailable as ex:
            logger.warning(f"Original of document {document.id} unavailable, using fallback: {ex}")
            original = None

        if original is not None:
            validation = self._validator.validate(original)
            if validation.processable:
                attempt = self._engine.sign(original, payload)
                if attempt.succeeded:
                    return attempt.pdf_bytes, False, attempt.strategy
                reasons = "; ".join(f"{f.strategy}: {f.error}" for f in attempt.failures)
                logger.warning(f"No strategy could sign document {document.id} ({reasons})")
            else:
                logger.warning(
                    f"Original of document {document.id} is {validation.validity.value}: {validation.reason}"
                )

        return self._synthesizer.build(document.title, signer, payload), True, None

    def _discard(self, locator: str) -> None:
        """Remove an artifact that no record points at."""
        try:
            self._store.delete(locator)
        except (SigningError, OSError, sqlite3.Error) as ex:
            logger.warning(f"Could not discard unreferenced artifact {locator}: {ex}")

    def _event(self, event: str, user: CurrentUser, document_id: int, message: str,
               level: str = "INFO") -> None:
        if self._events is None:
            return
        try:
            self._events.log(_FEATURE_ID, event, user_id=user.id, username=user.name, level=level,
                             reference_id=str(document_id), message=message)
        except sqlite3.Error as ex:
            logger.warning(f"Could not record event '{event}' for document {document_id}: {ex}")

    def sign_document(self, document_id: object, signature_data: SignatureInput = None) -> SignDocumentResult:
        """Sign ``document_id`` for the calling worker; never raises for domain failures."""
        # Nothing is written before the caller, document and signature are settled
        try:
            doc_id = coerce_document_id(document_id)
            user = self._require_user()
            document = self._repo.find_document_for_worker(doc_id, user.id)
            if document is None:
                raise NotFoundError(f"Document {doc_id} not found")
            if document.status is DocumentStatus.SIGNED:
                existing = self._repo.get_document_signature(doc_id)
                return SignDocumentResult(
                    success=False,
                    outcome=SignOutcome.ALREADY_SIGNED,
                    document_id=doc_id,
                    artifact_locator=existing.signed_artifact_ref if existing else None,
                    message="Document is already signed",
                )
            if document.status is not DocumentStatus.PENDING:
                raise ValidationError(f"Document {doc_id} is {document.status.value} and cannot be signed")
            payload = self._resolve_payload(user, signature_data)
        except NotFoundError as ex:
            return SignDocumentResult(False, SignOutcome.NOT_FOUND, error=str(ex), message="Document not found")
        except ValidationError as ex:
            return SignDocumentResult(False, SignOutcome.VALIDATION_ERROR, error=str(ex), message=str(ex))

        logger.info(f"Signing document {doc_id} for worker {user.id} ({payload.kind.value} signature)")
        self._event("sign_started", user, doc_id, f"Signing '{document.title}'")

        # Overlay or attestation
        try:
            signed_bytes, used_fallback, strategy = self._produce_signed_bytes(document, user.name, payload)
        except ProcessingFailure as ex:
            logger.error(f"Could not produce a signed document for {doc_id}: {ex}")
            return SignDocumentResult(False, SignOutcome.PROCESSING_FAILURE, doc_id, error=str(ex),
                                      message="The document could not be processed")
        if used_fallback:
            self._event("fallback_used", user, doc_id, "Original not processable, attestation generated",
                        level="WARNING")

        # Store
        now = utc_now()
        name = self._naming.propose_name(NamingContext(document.title, used_fallback, epoch_millis(now)))
        try:
            locator = self._store.save(name, signed_bytes, folder=ArtifactFolder.SIGNED)
        except PersistenceFailure as ex:
            logger.error(f"Could not store signed artifact for document {doc_id}: {ex}")
            return SignDocumentResult(False, SignOutcome.PERSISTENCE_FAILURE, doc_id, used_fallback,
                                      error=str(ex), message="Error saving the signed document")

        # Record
        try:
            self._repo.commit_signature(
                document_id=doc_id,
                worker_id=user.id,
                signature_data=self._seal(payload),
                signed_file_path=locator,
                signed_at=now,
            )
        except AlreadySigned:
            self._discard(locator)
            existing = self._repo.get_document_signature(doc_id)
            self._event("already_signed", user, doc_id, "Lost signing race")
            return SignDocumentResult(
                success=False,
                outcome=SignOutcome.ALREADY_SIGNED,
                document_id=doc_id,
                used_fallback=used_fallback,
                artifact_locator=existing.signed_artifact_ref if existing else None,
                message="Document is already signed",
            )
        except NotFoundError as ex:
            self._discard(locator)
            return SignDocumentResult(False, SignOutcome.NOT_FOUND, doc_id, error=str(ex),
                                      message="Document not found")
        except PersistenceFailure as ex:
            self._discard(locator)
            logger.error(f"Signing write for document {doc_id} failed: {ex}")
            return SignDocumentResult(False, SignOutcome.PERSISTENCE_FAILURE, doc_id, used_fallback,
                                      error=str(ex), message="Error saving the signature")

        # Verify
        try:
            self._verifier.verify(doc_id, locator)
        except VerificationFailure as ex:
            logger.critical(f"Signed state of document {doc_id} is inconsistent: {ex}")
            self._event("verification_failed", user, doc_id, str(ex), level="CRITICAL")
            return SignDocumentResult(False, SignOutcome.VERIFICATION_FAILURE, doc_id, used_fallback,
                                      artifact_locator=locator, strategy=strategy, error=str(ex),
                                      message="The signature could not be verified")

        self._event("signed", user, doc_id, f"{locator} (fallback={used_fallback}, strategy={strategy})")
        logger.info(f"Document {doc_id} signed -> {locator}" + (" (fallback)" if used_fallback else ""))
        return SignDocumentResult(
            success=True,
            outcome=SignOutcome.SIGNED,
            document_id=doc_id,
            used_fallback=used_fallback,
            artifact_locator=locator,
            strategy=strategy,
            message=(
                "Document signed successfully (substitute document generated)"
                if used_fallback else "Document signed successfully"
            ),
        )
