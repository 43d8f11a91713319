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

__all__ = [
    "AlreadySigned",
    "ArtifactUnavailable",
    "NoSignatureError",
    "NotFoundError",
    "PersistenceFailure",
    "ProcessingFailure",
    "SigningError",
    "ValidationError",
    "VerificationFailure",
]
