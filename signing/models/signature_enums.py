# signing/models/signature_enums.py
from __future__ import annotations
from enum import Enum


class PayloadKind(str, Enum):
    """How a signature payload is rendered."""
    IMAGE = "image"
    TEXT = "text"


class StampMode(str, Enum):
    """What actually ended up on the page."""
    IMAGE = "image"
    TEXT = "text"


class PdfValidity(str, Enum):
    MALFORMED = "malformed"
    VALID_BUT_UNPROCESSABLE = "valid_but_unprocessable"
    PROCESSABLE = "processable"


class AttemptOutcome(str, Enum):
    SIGNED = "signed"
    STRATEGIES_EXHAUSTED = "strategies_exhausted"


class SignOutcome(str, Enum):
    SIGNED = "signed"
    ALREADY_SIGNED = "already_signed"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    PROCESSING_FAILURE = "processing_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    VERIFICATION_FAILURE = "verification_failure"


class ArtifactFolder(str, Enum):
    """Logical destination of an artifact; only the filesystem backend uses it."""
    DOCUMENTS = "documents"
    SIGNED = "signed"
