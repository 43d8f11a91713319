"""Signature payload as supplied by the caller or loaded from storage."""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Optional, Union

from .signature_enums import PayloadKind

IMAGE_FALLBACK_LABEL = "Digital signature applied"

_DATA_URI_PREFIX = "data:image"
_IMAGE_MAGIC = (b"\x89PNG\r\n\x1a\n", b"\xff\xd8\xff", b"GIF8")


@dataclass(frozen=True)
class SignaturePayload:
    """
    ``raw`` is the storable string form: a ``data:image/...;base64,`` URI for
    drawn signatures, the literal text otherwise. ``image_bytes`` is the
    decoded image, or None when the URI does not carry valid base64.
    """
    kind: PayloadKind
    raw: str
    image_bytes: Optional[bytes] = None

    # ------------------------------------------------------------------ #
    @classmethod
    def parse(cls, value: Union[str, bytes]) -> "SignaturePayload":
        if isinstance(value, (bytes, bytearray)):
            data = bytes(value)
            if data.startswith(_IMAGE_MAGIC):
                mime = "image/png" if data.startswith(b"\x89PNG") else "image/jpeg"
                if data.startswith(b"GIF8"):
                    mime = "image/gif"
                uri = f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
                return cls(PayloadKind.IMAGE, uri, data)
            value = data.decode("utf-8", errors="replace")

        text = value.strip()
        if text.startswith(_DATA_URI_PREFIX):
            return cls(PayloadKind.IMAGE, text, _decode_data_uri(text))
        return cls(PayloadKind.TEXT, text)

    # ------------------------------------------------------------------ #
    @staticmethod
    def is_trivial(value: Union[str, bytes, None]) -> bool:
        """True when *value* is too small to be used as an explicit signature."""
        if value is None:
            return True
        if isinstance(value, (bytes, bytearray)):
            if bytes(value).startswith(_IMAGE_MAGIC):
                return False
            value = bytes(value).decode("utf-8", errors="replace")
        text = value.strip()
        if not text:
            return True
        return not text.startswith(_DATA_URI_PREFIX) and len(text) < 3

    @property
    def is_image(self) -> bool:
        return self.kind is PayloadKind.IMAGE

    def display_text(self, max_length: Optional[int] = None) -> str:
        """Text to draw when the payload is (or must be treated as) text."""
        if self.is_image:
            return IMAGE_FALLBACK_LABEL
        if max_length is not None and len(self.raw) > max_length:
            return IMAGE_FALLBACK_LABEL
        return self.raw


def _decode_data_uri(uri: str) -> Optional[bytes]:
    _, sep, encoded = uri.partition(",")
    if not sep or not encoded:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return None
