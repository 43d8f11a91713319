"""Persistent records of the signing feature."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from core.helpers.date_time_helper import parse_utc_iso


class DocumentStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"
    EXPIRED = "expired"


class ArtifactBackendKind(str, Enum):
    BLOB = "blob"
    FILESYSTEM = "filesystem"


@dataclass(slots=True)
class Document:
    """
    A document assigned to one worker for signature.

    ``original_artifact_ref`` is the locator of the uploaded PDF; it is
    resolved through the artifact store and never read directly.
    """
    id: int
    title: str
    original_artifact_ref: str
    status: DocumentStatus
    owner_admin_id: int
    assigned_worker_id: int
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Document":
        return cls(
            id=int(row["id"]),
            title=row["title"],
            description=row["description"],
            original_artifact_ref=row["file_path"],
            status=DocumentStatus(row["status"]),
            owner_admin_id=int(row["admin_id"]),
            assigned_worker_id=int(row["worker_id"]),
            created_at=parse_utc_iso(row["created_at"]),
            updated_at=parse_utc_iso(row["updated_at"]),
        )


@dataclass(slots=True)
class SignatureRecord:
    """
    A worker's reusable signature, independent of any document.
    ``payload`` is the decrypted value (PNG data-URI or literal text).
    """
    id: int
    worker_id: int
    payload: str
    updated_at: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class DocumentSignature:
    """Join record: which signature and which artifact signed a document."""
    document_id: int
    worker_id: int
    signature_id: int
    signed_artifact_ref: str
    signed_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DocumentSignature":
        return cls(
            document_id=int(row["document_id"]),
            worker_id=int(row["worker_id"]),
            signature_id=int(row["signature_id"]),
            signed_artifact_ref=row["signed_file_path"],
            signed_at=parse_utc_iso(row["signed_at"]),
        )


@dataclass(slots=True, frozen=True)
class SignedDocumentView:
    """Document joined with its (optional) signature row."""
    document_id: int
    title: str
    status: DocumentStatus
    signed_artifact_ref: Optional[str]
    signed_at: Optional[datetime]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SignedDocumentView":
        return cls(
            document_id=int(row["id"]),
            title=row["title"],
            status=DocumentStatus(row["status"]),
            signed_artifact_ref=row["signed_file_path"],
            signed_at=parse_utc_iso(row["signed_at"]),
        )


@dataclass(slots=True, frozen=True)
class Artifact:
    backend: ArtifactBackendKind
    locator: str
    data: bytes
    content_type: str = "application/pdf"
