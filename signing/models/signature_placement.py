from __future__ import annotations
from dataclasses import dataclass

from .signature_enums import StampMode


@dataclass(frozen=True)
class SignaturePlacement:
    """
    Placement on the LAST page, relative to the page's media box
    (points; 1 pt = 1/72 inch), origin bottom-left.
    """
    x_ratio: float = 0.70           # share of page width from the left edge
    y_ratio: float = 0.52           # share of page height from the bottom edge
    image_width: float = 150.0
    image_height: float = 60.0
    text_font_size: int = 14
    label_font_size: int = 12       # used when an image payload cannot be embedded

    def anchor(self, left: float, bottom: float, width: float, height: float) -> tuple[float, float]:
        return left + width * self.x_ratio, bottom + height * self.y_ratio


@dataclass(frozen=True)
class SignatureStamp:
    """Where and how the signature was drawn."""
    page_index: int
    x: float
    y: float
    width: float
    height: float
    mode: StampMode
