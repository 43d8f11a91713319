"""Post-commit check that the document row and its artifact agree."""
from __future__ import annotations

import logging
from typing import Optional

from signing.adapters.artifact_store import ArtifactStore
from signing.exceptions.errors import ArtifactUnavailable, VerificationFailure
from signing.models.records import DocumentStatus, SignedDocumentView
from signing.repository.signing_repository import SigningRepository

logger = logging.getLogger(__name__)


class StatusVerifier:
    """
    Re-reads the joined document/signature row after the signing write and
    confirms the document is ``signed``, points at ``expected_locator`` and
    that the locator loads.
    """

    def __init__(self, repository: SigningRepository, store: ArtifactStore) -> None:
        self._repo = repository
        self._store = store

    def verify(self, document_id: int, expected_locator: Optional[str] = None) -> SignedDocumentView:
        view = self._repo.get_signed_view(document_id)
        if view is None:
            raise VerificationFailure(f"Document {document_id} disappeared after signing")
        if view.status is not DocumentStatus.SIGNED:
            raise VerificationFailure(f"Document {document_id} has status '{view.status.value}', expected 'signed'")
        if not view.signed_artifact_ref:
            raise VerificationFailure(f"Document {document_id} has no signed artifact reference")
        if expected_locator is not None and view.signed_artifact_ref != expected_locator:
            raise VerificationFailure(
                f"Document {document_id} points at {view.signed_artifact_ref}, expected {expected_locator}"
            )

        try:
            self._store.load(view.signed_artifact_ref)
        except ArtifactUnavailable as ex:
            raise VerificationFailure(f"Signed artifact of document {document_id} is unreadable: {ex}") from ex

        logger.debug(f"Verified document {document_id} -> {view.signed_artifact_ref}")
        return view
