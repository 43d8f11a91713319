"""Storage adapter abstraction.

Defines the interface for artifact (binary blob) storage. The locator a
backend returns from :meth:`ArtifactBackend.save` encodes which backend owns
it, so any locator can later be resolved without knowing how the process
was configured when it was written.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from signing.models.records import ArtifactBackendKind
from signing.models.signature_enums import ArtifactFolder


class ArtifactBackend(ABC):
    """Abstract storage backend for opaque artifact bytes."""

    kind: ArtifactBackendKind

    @abstractmethod
    def owns(self, locator: str) -> bool:
        """
        Return True if *locator* has this backend's shape.

        Args:
            locator: Locator string as stored in the database
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, name: str, data: bytes, *, folder: ArtifactFolder,
             content_type: str = "application/pdf") -> str:
        """
        Persist bytes under a new locator.

        Args:
            name: File name (must be unique per folder)
            data: Raw bytes
            folder: Logical destination
            content_type: MIME type

        Returns:
            Locator string
        """
        raise NotImplementedError

    @abstractmethod
    def load(self, locator: str) -> bytes:
        """
        Read the bytes behind *locator*.

        Raises:
            ArtifactUnavailable: if the row/file is missing or unreadable
        """
        raise NotImplementedError

    @abstractmethod
    def content_type(self, locator: str) -> str:
        """MIME type recorded for *locator*."""
        raise NotImplementedError

    @abstractmethod
    def exists(self, locator: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete(self, locator: str) -> bool:
        """
        Remove the artifact.

        Returns:
            True if something was deleted
        """
        raise NotImplementedError
