"""Typed results passed between the signing components."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .signature_enums import AttemptOutcome, PdfValidity, SignOutcome
from .signature_placement import SignatureStamp


@dataclass(frozen=True)
class PdfValidationResult:
    validity: PdfValidity
    reason: Optional[str] = None
    page_count: Optional[int] = None

    @property
    def processable(self) -> bool:
        return self.validity is PdfValidity.PROCESSABLE


@dataclass(frozen=True)
class StrategyFailure:
    strategy: str
    error: str


@dataclass(frozen=True)
class SigningAttempt:
    """Result of running the strategy list over one document."""
    outcome: AttemptOutcome
    pdf_bytes: Optional[bytes] = None
    strategy: Optional[str] = None
    stamp: Optional[SignatureStamp] = None
    failures: List[StrategyFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.outcome is AttemptOutcome.SIGNED and self.pdf_bytes is not None


@dataclass(frozen=True)
class SignDocumentResult:
    """Outcome of one ``sign_document`` call, suitable for rendering to a user."""
    success: bool
    outcome: SignOutcome
    document_id: Optional[int] = None
    used_fallback: bool = False
    artifact_locator: Optional[str] = None
    strategy: Optional[str] = None
    error: Optional[str] = None
    message: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "outcome": self.outcome.value,
            "documentId": self.document_id,
            "usedFallback": self.used_fallback,
            "artifactLocator": self.artifact_locator,
            "strategy": self.strategy,
            "error": self.error,
            "message": self.message,
        }
