# signing/logic/encryption.py
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import List, Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

_LEGACY_IMAGE_MAGIC = (b"\x89PNG\r\n\x1a\n", b"\xff\xd8\xff", b"GIF")


class SignatureVault:
    """
    Encrypts stored worker signatures with Fernet.

    The key file holds one base64 key per line: the first line is the
    CURRENT key (used for encrypt), the remaining lines are legacy keys
    (decrypt only). The file is created with a fresh key on first use.
    """

    def __init__(self, key_file: Path | str) -> None:
        self._key_file = Path(key_file)
        self._lock = threading.Lock()
        self._ring: Optional[List[Fernet]] = None

    def _load_keyring(self) -> List[Fernet]:
        with self._lock:
            if self._ring is not None:
                return self._ring

            if not self._key_file.exists():
                self._key_file.parent.mkdir(parents=True, exist_ok=True)
                key = Fernet.generate_key()
                fd = os.open(self._key_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
                with os.fdopen(fd, "wb") as fh:
                    fh.write(key + b"\n")
                logger.info(f"Created signature key file {self._key_file}")

            lines = [ln.strip() for ln in self._key_file.read_bytes().splitlines() if ln.strip()]
            if not lines:
                raise ValueError(f"Signature key file is empty: {self._key_file}")

            ferns = [Fernet(lines[0])]
            for k in lines[1:]:
                try:
                    ferns.append(Fernet(k))
                except ValueError:
                    logger.warning("Ignoring malformed legacy key in signature key file")
            self._ring = ferns
            return ferns

    def encrypt(self, payload: str) -> str:
        """Encrypt a signature payload with the current key."""
        return self._load_keyring()[0].encrypt(payload.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Try the current key first, then legacy keys. Values written before
        encryption was introduced (data-URIs, plain text, raw images) are
        returned as-is.
        """
        raw = token.encode("utf-8")
        for f in self._load_keyring():
            try:
                return f.decrypt(raw).decode("utf-8")
            except InvalidToken:
                continue

        if token.startswith("data:image") or raw.startswith(_LEGACY_IMAGE_MAGIC):
            return token
        if not token.startswith("gAAAA"):
            # Fernet tokens always start with this version prefix
            return token
        raise InvalidToken("Unable to decrypt stored signature")
