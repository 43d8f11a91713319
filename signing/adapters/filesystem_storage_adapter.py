"""Filesystem implementation of ArtifactBackend.

Stores artifacts below a document root with a fixed directory per folder;
locators are POSIX paths relative to that root
(``uploads/signed/<name>``).
"""

from __future__ import annotations
from typing import Dict, Optional
from pathlib import Path, PurePosixPath
import logging
import mimetypes
import os

from signing.adapters.storage_adapter import ArtifactBackend
from signing.exceptions.errors import ArtifactUnavailable, PersistenceFailure
from signing.models.records import ArtifactBackendKind
from signing.models.signature_enums import ArtifactFolder

logger = logging.getLogger(__name__)

DEFAULT_FOLDERS: Dict[ArtifactFolder, str] = {
    ArtifactFolder.DOCUMENTS: "uploads/documents",
    ArtifactFolder.SIGNED: "uploads/signed",
}


class FilesystemArtifactBackend(ArtifactBackend):
    """Local filesystem implementation of ArtifactBackend."""

    kind = ArtifactBackendKind.FILESYSTEM

    def __init__(self, document_root: str | Path, *,
                 folders: Optional[Dict[ArtifactFolder, str]] = None,
                 reserved_prefixes: tuple[str, ...] = ()):
        """
        Initialize filesystem storage.

        Args:
            document_root: Root directory locators are relative to
            folders: Relative directory per logical folder
            reserved_prefixes: Locator prefixes owned by other backends
        """
        self._root = Path(document_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._folders = dict(DEFAULT_FOLDERS)
        if folders:
            self._folders.update(folders)
        self._reserved = tuple(reserved_prefixes)

    @property
    def root(self) -> Path:
        return self._root

    def owns(self, locator: str) -> bool:
        return bool(locator) and not locator.startswith(self._reserved)

    def _resolve(self, locator: str) -> Path:
        """Map a locator to an absolute path inside the root."""
        if not self.owns(locator):
            raise ArtifactUnavailable(locator, "not a filesystem locator")
        relative = PurePosixPath(locator.lstrip("/"))
        path = (self._root / Path(*relative.parts)).resolve()
        if path != self._root and self._root not in path.parents:
            raise ArtifactUnavailable(locator, "path escapes the document root")
        return path

    def save(self, name: str, data: bytes, *, folder: ArtifactFolder,
             content_type: str = "application/pdf") -> str:
        safe_name = Path(name).name
        if not safe_name or safe_name in {".", ".."}:
            raise PersistenceFailure(f"Invalid artifact name: {name!r}")

        relative_dir = PurePosixPath(self._folders[folder])
        target_dir = self._root / Path(*relative_dir.parts)
        target = target_dir / safe_name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            # "x": never overwrite another artifact
            with open(target, "xb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as ex:
            raise PersistenceFailure(f"Could not write artifact {target}: {ex}") from ex

        locator = str(relative_dir / safe_name)
        logger.info(f"Stored {len(data)} bytes as {locator}")
        return locator

    def load(self, locator: str) -> bytes:
        path = self._resolve(locator)
        if not path.is_file():
            raise ArtifactUnavailable(locator, f"file not found: {path}")
        try:
            return path.read_bytes()
        except OSError as ex:
            raise ArtifactUnavailable(locator, str(ex)) from ex

    def content_type(self, locator: str) -> str:
        path = self._resolve(locator)
        guessed, _ = mimetypes.guess_type(path.name)
        return guessed or "application/octet-stream"

    def exists(self, locator: str) -> bool:
        try:
            return self._resolve(locator).is_file()
        except ArtifactUnavailable:
            return False

    def delete(self, locator: str) -> bool:
        try:
            path = self._resolve(locator)
        except ArtifactUnavailable:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
