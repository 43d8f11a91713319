"""Artifact store: one active backend for writes, locator-shape dispatch for reads."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from signing.adapters.blob_storage_adapter import DEFAULT_BLOB_PREFIX, BlobArtifactBackend
from signing.adapters.database_adapter import DatabaseAdapter
from signing.adapters.filesystem_storage_adapter import FilesystemArtifactBackend
from signing.adapters.storage_adapter import ArtifactBackend
from signing.exceptions.errors import ArtifactUnavailable
from signing.models.records import Artifact, ArtifactBackendKind
from signing.models.signature_enums import ArtifactFolder

logger = logging.getLogger(__name__)


class ArtifactStore:
    """
    Saves through ``active``; loads through whichever resolver owns the
    locator. Resolvers are checked in order, so a backend with a reserved
    prefix must come before the catch-all filesystem backend.
    """

    def __init__(self, active: ArtifactBackend, resolvers: Sequence[ArtifactBackend] = ()) -> None:
        self._active = active
        ordered = list(resolvers) or [active]
        if active not in ordered:
            ordered.insert(0, active)
        self._resolvers = ordered

    @property
    def active_kind(self) -> ArtifactBackendKind:
        return self._active.kind

    def backend_for(self, locator: str) -> ArtifactBackend:
        for backend in self._resolvers:
            if backend.owns(locator):
                return backend
        raise ArtifactUnavailable(locator, "no backend recognises this locator")

    # ------------------------------------------------------------------ #
    def save(self, name: str, data: bytes, *, folder: ArtifactFolder = ArtifactFolder.SIGNED,
             content_type: str = "application/pdf") -> str:
        return self._active.save(name, data, folder=folder, content_type=content_type)

    def load(self, locator: Optional[str]) -> bytes:
        if not locator:
            raise ArtifactUnavailable(str(locator), "empty locator")
        return self.backend_for(locator).load(locator)

    def fetch(self, locator: str) -> Artifact:
        backend = self.backend_for(locator)
        data = backend.load(locator)
        return Artifact(
            backend=backend.kind,
            locator=locator,
            data=data,
            content_type=backend.content_type(locator),
        )

    def exists(self, locator: Optional[str]) -> bool:
        if not locator:
            return False
        try:
            return self.backend_for(locator).exists(locator)
        except ArtifactUnavailable:
            return False

    def delete(self, locator: Optional[str]) -> bool:
        if not locator:
            return False
        try:
            backend = self.backend_for(locator)
        except ArtifactUnavailable:
            return False
        deleted = backend.delete(locator)
        if deleted:
            logger.info(f"Deleted artifact {locator}")
        return deleted


def build_artifact_store(
    *,
    managed_mode: bool,
    db: DatabaseAdapter,
    document_root: str | Path,
    blob_prefix: str = DEFAULT_BLOB_PREFIX,
    signed_dir: str = "uploads/signed",
    documents_dir: str = "uploads/documents",
) -> ArtifactStore:
    """
    Wire both backends and pick the active one for the lifetime of the store.

    Both stay readable so locators written under the other mode still resolve.
    """
    blob = BlobArtifactBackend(db, prefix=blob_prefix)
    filesystem = FilesystemArtifactBackend(
        document_root,
        folders={ArtifactFolder.SIGNED: signed_dir, ArtifactFolder.DOCUMENTS: documents_dir},
        reserved_prefixes=(blob.prefix,),
    )
    active: ArtifactBackend = blob if managed_mode else filesystem
    logger.info(f"Artifact store active backend: {active.kind.value}")
    return ArtifactStore(active, [blob, filesystem])
