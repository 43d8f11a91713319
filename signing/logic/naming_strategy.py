from __future__ import annotations
import re
import uuid
from dataclasses import dataclass
from typing import Protocol

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class NamingContext:
    document_title: str
    used_fallback: bool
    timestamp_ms: int


class NamingStrategy(Protocol):
    def propose_name(self, ctx: NamingContext) -> str: ...


class DefaultPrefixStrategy:
    """Default: 'Contrato.pdf' -> 'signed_<ms>_<uid>_Contrato.pdf'"""
    def propose_name(self, ctx: NamingContext) -> str:
        prefix = "fallback_signed" if ctx.used_fallback else "signed"
        stem = ctx.document_title.strip()
        if stem.lower().endswith(".pdf"):
            stem = stem[:-4]
        stem = _UNSAFE.sub("_", stem).strip("._")[:80] or "document"
        return f"{prefix}_{ctx.timestamp_ms}_{uuid.uuid4().hex[:8]}_{stem}.pdf"


def upload_name(original_filename: str, timestamp_ms: int) -> str:
    """Name for an uploaded original: 'document_<ms>_<uid>_<file>'."""
    base = _UNSAFE.sub("_", original_filename.strip()).strip("._") or "upload.pdf"
    if not base.lower().endswith(".pdf"):
        base += ".pdf"
    return f"document_{timestamp_ms}_{uuid.uuid4().hex[:8]}_{base}"
