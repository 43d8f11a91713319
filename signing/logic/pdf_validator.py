"""
PDF validation.

Classifies raw bytes as MALFORMED (not a PDF at all), VALID_BUT_UNPROCESSABLE
(a PDF header, but no reader can open it) or PROCESSABLE.
"""

from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PasswordType, PdfReader

from signing.models.signature_enums import PdfValidity
from signing.models.signing_result import PdfValidationResult

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
MIN_PDF_LENGTH = 5


class EncryptedPdfError(Exception):
    """Raised when a reader cannot get past the document's encryption."""


def open_reader(data: bytes, *, strict: bool, decrypt: bool) -> PdfReader:
    """
    Parse *data* and make sure the page tree is readable.

    With ``decrypt`` an encrypted file is opened with the empty user password;
    without it any encrypted file is refused.
    """
    reader = PdfReader(BytesIO(data), strict=strict)
    if reader.is_encrypted:
        if not decrypt:
            raise EncryptedPdfError("document is encrypted")
        if reader.decrypt("") == PasswordType.NOT_DECRYPTED:
            raise EncryptedPdfError("document requires a password")
    if len(reader.pages) < 1:
        raise ValueError("document has no pages")
    return reader


class PdfValidator:
    """Stateless; safe to share between threads."""

    def validate(self, data: bytes) -> PdfValidationResult:
        if data is None or len(data) < MIN_PDF_LENGTH:
            return PdfValidationResult(PdfValidity.MALFORMED, "file too small to be a PDF")
        if data[:4] != PDF_MAGIC:
            return PdfValidationResult(PdfValidity.MALFORMED, "missing %PDF header")

        try:
            reader = open_reader(data, strict=True, decrypt=False)
            return PdfValidationResult(PdfValidity.PROCESSABLE, page_count=len(reader.pages))
        except Exception as ex:
            logger.info(f"Strict parse failed, retrying permissively: {ex}")

        try:
            reader = open_reader(data, strict=False, decrypt=True)
            return PdfValidationResult(
                PdfValidity.PROCESSABLE,
                reason="opened with permissive reader",
                page_count=len(reader.pages),
            )
        except Exception as ex:
            logger.warning(f"PDF has a valid header but cannot be processed: {ex}")
            return PdfValidationResult(PdfValidity.VALID_BUT_UNPROCESSABLE, f"encrypted or corrupt: {ex}")
