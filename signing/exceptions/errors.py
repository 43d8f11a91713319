"""Signing feature exceptions."""
from __future__ import annotations


class SigningError(Exception):
    """Base exception for the signing feature."""


class ValidationError(SigningError):
    """Caller input was rejected before any mutation took place."""


class NotFoundError(ValidationError):
    """Document is missing or not owned by the calling user."""


class NoSignatureError(ValidationError):
    """Neither an explicit nor a stored signature is available."""


class ArtifactUnavailable(SigningError):
    """A locator does not resolve to readable bytes."""

    def __init__(self, locator: str, reason: str = "") -> None:
        self.locator = locator
        self.reason = reason
        super().__init__(f"Artifact unavailable: {locator}" + (f" ({reason})" if reason else ""))


class ProcessingFailure(SigningError):
    """Neither the signing engine nor the fallback synthesis produced a document."""


class PersistenceFailure(SigningError):
    """The atomic record write failed; nothing was committed."""


class AlreadySigned(SigningError):
    """The document left the pending state before this call could sign it."""

    def __init__(self, document_id: int) -> None:
        self.document_id = document_id
        super().__init__(f"Document {document_id} is already signed")


class VerificationFailure(SigningError):
    """Committed state does not match what was written."""
