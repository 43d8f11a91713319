"""Adapters for external dependencies.

Provides abstraction layers for:
- Database access (SQL-agnostic)
- Artifact storage (database table or filesystem)
- The calling user (session-agnostic)
"""

from signing.adapters.database_adapter import DatabaseAdapter
from signing.adapters.sqlite_adapter import SQLiteAdapter
from signing.adapters.storage_adapter import ArtifactBackend
from signing.adapters.blob_storage_adapter import BlobArtifactBackend
from signing.adapters.filesystem_storage_adapter import FilesystemArtifactBackend
from signing.adapters.artifact_store import ArtifactStore, build_artifact_store
from signing.adapters.current_user_provider import (
    CurrentUser,
    CurrentUserProvider,
    StaticCurrentUserProvider,
)

__all__ = [
    "DatabaseAdapter",
    "SQLiteAdapter",
    "ArtifactBackend",
    "BlobArtifactBackend",
    "FilesystemArtifactBackend",
    "ArtifactStore",
    "build_artifact_store",
    "CurrentUser",
    "CurrentUserProvider",
    "StaticCurrentUserProvider",
]
