"""
Fallback attestation document.

When the original PDF cannot be opened or rewritten, a new single-page A4
document is generated instead. It names the document and the signer, carries
the signature and states that the original could not be processed.
"""
from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from typing import Optional

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.helpers.date_time_helper import epoch_millis, format_display, utc_now
from signing.exceptions.errors import ProcessingFailure
from signing.models.signature_payload import SignaturePayload

logger = logging.getLogger(__name__)

PAGE_SIZE = (595, 842)  # A4 in points
MARGIN_X = 50
MAX_TEXT_SIGNATURE = 100

HEADING = "DIGITALLY SIGNED DOCUMENT"
DISCLAIMER_LINES = (
    "The original document could not be processed due to security",
    "restrictions or corruption. This is a substitute version that",
    "confirms the worker's digital signature.",
)
FOOTER = "Document generated automatically by the system"


class FallbackDocumentSynthesizer:
    """Builds the attestation PDF. :meth:`build` always returns PDF bytes."""

    def build(
        self,
        document_title: str,
        signer_name: str,
        payload: SignaturePayload,
        now: Optional[datetime] = None,
    ) -> bytes:
        now = now or utc_now()
        try:
            return self._render(document_title, signer_name, payload, now)
        except Exception as ex:
            logger.error(f"Fallback layout failed, rendering minimal version: {ex}")

        try:
            return self._render_minimal(document_title, signer_name, now)
        except Exception as ex:
            raise ProcessingFailure(f"Could not create fallback document: {ex}") from ex

    # ------------------------------------------------------------------ #
    def _render(self, title: str, signer: str, payload: SignaturePayload, now: datetime) -> bytes:
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=PAGE_SIZE)
        _, height = PAGE_SIZE
        c.setTitle(f"Signed: {title}")
        c.setAuthor(signer)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 18)
        c.drawString(MARGIN_X, height - 100, HEADING)

        c.setFont("Helvetica", 12)
        c.drawString(MARGIN_X, height - 150, f"Title: {title}")
        c.drawString(MARGIN_X, height - 180, f"Signed by: {signer}")
        c.drawString(MARGIN_X, height - 210, f"Signing date: {format_display(now)}")

        c.setFillColorRGB(0.8, 0, 0)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(MARGIN_X, height - 260, "NOTE:")
        c.setFillColorRGB(0.5, 0, 0)
        c.setFont("Helvetica", 10)
        for i, line in enumerate(DISCLAIMER_LINES):
            c.drawString(MARGIN_X, height - 290 - 20 * i, line)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(MARGIN_X, height - 400, "Digital signature:")
        self._draw_signature(c, payload, height)

        c.setStrokeColorRGB(0, 0, 0)
        c.setLineWidth(1)
        c.line(MARGIN_X, height - 520, 300, height - 520)

        c.setFillColorRGB(0.5, 0.5, 0.5)
        c.setFont("Helvetica", 8)
        c.drawString(MARGIN_X, height - 600, FOOTER)
        c.drawString(MARGIN_X, height - 620, f"Verification ID: {epoch_millis(now)}")

        c.showPage()
        c.save()
        return buf.getvalue()

    @staticmethod
    def _draw_signature(c: canvas.Canvas, payload: SignaturePayload, height: float) -> None:
        if payload.is_image and payload.image_bytes:
            try:
                img = Image.open(BytesIO(payload.image_bytes))
                img.load()
                c.drawImage(ImageReader(img.convert("RGBA")), MARGIN_X, height - 500,
                            width=200, height=80, mask="auto")
                return
            except Exception as ex:
                logger.warning(f"Could not embed signature image in fallback document: {ex}")

        c.setFillColorRGB(0, 0, 0.8)
        c.setFont("Helvetica", 16)
        c.drawString(MARGIN_X, height - 450, payload.display_text(MAX_TEXT_SIGNATURE))

    def _render_minimal(self, title: str, signer: str, now: datetime) -> bytes:
        def ascii_only(text: str) -> str:
            return text.encode("ascii", errors="replace").decode("ascii")

        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=PAGE_SIZE)
        _, height = PAGE_SIZE
        c.setFont("Helvetica", 12)
        lines = (
            HEADING,
            f"Title: {ascii_only(title)}",
            f"Signed by: {ascii_only(signer)}",
            f"Signing date: {format_display(now)}",
            "The original document could not be processed.",
            f"Verification ID: {epoch_millis(now)}",
        )
        for i, line in enumerate(lines):
            c.drawString(MARGIN_X, height - 100 - 30 * i, line)
        c.showPage()
        c.save()
        return buf.getvalue()
