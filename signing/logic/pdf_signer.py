"""
Signature overlay for existing PDFs.

A reportlab canvas of the same size as the target page carries the signature
(image or text); pypdf merges it onto the last page. Parsing is attempted
with an ordered list of progressively more permissive strategies and the
first one that produces bytes wins.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from io import BytesIO
from typing import Callable, Optional, Sequence, Tuple, TypeVar

from PIL import Image
from pypdf import PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from signing.logic.pdf_validator import open_reader
from signing.models.signature_enums import AttemptOutcome, StampMode
from signing.models.signature_payload import SignaturePayload
from signing.models.signature_placement import SignaturePlacement, SignatureStamp
from signing.models.signing_result import SigningAttempt, StrategyFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

SIGNATURE_COLOR = (0.0, 0.0, 0.8)
PRODUCER = "docsign signing pipeline"


@dataclass(frozen=True)
class ParseStrategy:
    name: str
    strict: bool
    decrypt: bool
    rewrite_metadata: bool


DEFAULT_STRATEGIES: Tuple[ParseStrategy, ...] = (
    ParseStrategy("strict", strict=True, decrypt=False, rewrite_metadata=True),
    ParseStrategy("ignore_encryption", strict=False, decrypt=True, rewrite_metadata=True),
    ParseStrategy("ignore_encryption_keep_metadata", strict=False, decrypt=True, rewrite_metadata=False),
)


class StrategyTimeout(Exception):
    pass


def _call_with_budget(fn: Callable[[], T], timeout: Optional[float]) -> T:
    """
    Run *fn* in a daemon thread and give up after *timeout* seconds.

    The thread cannot be interrupted; on timeout it is abandoned and its
    result discarded.
    """
    if not timeout or timeout <= 0:
        return fn()

    box: dict = {}

    def _target() -> None:
        try:
            box["value"] = fn()
        except BaseException as ex:  # re-raised in the caller
            box["error"] = ex

    worker = threading.Thread(target=_target, name="pdf-strategy", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise StrategyTimeout(f"exceeded {timeout:g}s")
    if "error" in box:
        raise box["error"]
    return box["value"]


class PdfSigningEngine:
    def __init__(
        self,
        *,
        placement: Optional[SignaturePlacement] = None,
        strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES,
        strategy_timeout: Optional[float] = None,
    ) -> None:
        self._placement = placement or SignaturePlacement()
        self._strategies = tuple(strategies)
        self._timeout = strategy_timeout

    @property
    def strategies(self) -> Tuple[ParseStrategy, ...]:
        return self._strategies

    # ------------------------------------------------------------------ #
    @staticmethod
    def _make_overlay(
        left: float,
        bottom: float,
        page_w: float,
        page_h: float,
        payload: SignaturePayload,
        placement: SignaturePlacement,
        page_index: int,
    ) -> Tuple[bytes, SignatureStamp]:
        """
        Build a one-page overlay (same size as the target page) with either
        the signature image or the signature text at the placement anchor.
        """
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(left + page_w, bottom + page_h))
        x, y = placement.anchor(left, bottom, page_w, page_h)

        stamp: Optional[SignatureStamp] = None
        if payload.is_image:
            try:
                if payload.image_bytes is None:
                    raise ValueError("signature data-URI carries no image data")
                sig = Image.open(BytesIO(payload.image_bytes))
                sig.load()
                c.drawImage(
                    ImageReader(sig.convert("RGBA")), x, y,
                    width=placement.image_width, height=placement.image_height, mask="auto",
                )
                stamp = SignatureStamp(page_index, x, y, placement.image_width,
                                       placement.image_height, StampMode.IMAGE)
            except Exception as ex:
                logger.warning(f"Signature image could not be embedded, drawing text instead: {ex}")

        if stamp is None:
            size = placement.label_font_size if payload.is_image else placement.text_font_size
            text = payload.display_text()
            c.setFillColorRGB(*SIGNATURE_COLOR)
            c.setFont("Helvetica", size)
            c.drawString(x, y, text)
            stamp = SignatureStamp(page_index, x, y, c.stringWidth(text, "Helvetica", size),
                                   float(size), StampMode.TEXT)

        c.save()
        return buf.getvalue(), stamp

    def _apply(self, pdf_bytes: bytes, payload: SignaturePayload,
               strategy: ParseStrategy, placement: SignaturePlacement) -> Tuple[bytes, SignatureStamp]:
        reader = open_reader(pdf_bytes, strict=strategy.strict, decrypt=strategy.decrypt)

        if strategy.rewrite_metadata:
            writer = PdfWriter(clone_from=reader)
        else:
            writer = PdfWriter()
            for page in reader.pages:
                writer.add_page(page)

        page_index = len(writer.pages) - 1
        last_page = writer.pages[page_index]
        box = last_page.mediabox
        overlay_pdf, stamp = self._make_overlay(
            float(box.left), float(box.bottom), float(box.width), float(box.height),
            payload, placement, page_index,
        )
        last_page.merge_page(PdfReader(BytesIO(overlay_pdf)).pages[0])

        if strategy.rewrite_metadata:
            metadata = {str(k): str(v) for k, v in (reader.metadata or {}).items()}
            metadata["/ModDate"] = datetime.now(timezone.utc).strftime("D:%Y%m%d%H%M%SZ")
            metadata["/Producer"] = PRODUCER
            writer.add_metadata(metadata)

        out = BytesIO()
        writer.write(out)
        return out.getvalue(), stamp

    # ------------------------------------------------------------------ #
    def sign(
        self,
        pdf_bytes: bytes,
        payload: SignaturePayload,
        placement: Optional[SignaturePlacement] = None,
    ) -> SigningAttempt:
        """
        Overlay *payload* on the last page. Never raises for document
        problems; a STRATEGIES_EXHAUSTED attempt is returned instead.
        """
        placement = placement or self._placement
        failures: list[StrategyFailure] = []

        for strategy in self._strategies:
            try:
                signed, stamp = _call_with_budget(
                    lambda s=strategy: self._apply(pdf_bytes, payload, s, placement), self._timeout
                )
            except Exception as ex:
                logger.info(f"Strategy '{strategy.name}' failed: {ex}")
                failures.append(StrategyFailure(strategy.name, f"{type(ex).__name__}: {ex}"))
                continue

            logger.info(
                f"Signed with strategy '{strategy.name}' "
                f"({len(pdf_bytes)} -> {len(signed)} bytes, {stamp.mode.value} stamp)"
            )
            return SigningAttempt(AttemptOutcome.SIGNED, signed, strategy.name, stamp, failures)

        logger.warning(f"All {len(self._strategies)} strategies failed")
        return SigningAttempt(AttemptOutcome.STRATEGIES_EXHAUSTED, failures=failures)
