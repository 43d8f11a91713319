"""
signing/tests/test_artifact_store.py

Blob and filesystem backends and locator-based dispatch.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from signing.adapters.artifact_store import build_artifact_store
from signing.adapters.sqlite_adapter import SQLiteAdapter
from signing.exceptions.errors import ArtifactUnavailable, PersistenceFailure
from signing.models.records import ArtifactBackendKind
from signing.models.signature_enums import ArtifactFolder
from signing.tests.fixtures.pdf_factory import make_pdf


class _StoreTestBase(unittest.TestCase):
    managed_mode = False

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.db = SQLiteAdapter(self.root / "db" / "signing.db")
        self.store = build_artifact_store(
            managed_mode=self.managed_mode, db=self.db, document_root=self.root / "public"
        )

    def tearDown(self) -> None:
        self.db.close()
        self._tmp.cleanup()


class TestFilesystemStore(_StoreTestBase):
    def test_save_and_load(self) -> None:
        data = make_pdf()
        locator = self.store.save("signed_1_Contrato.pdf", data)
        self.assertEqual(locator, "uploads/signed/signed_1_Contrato.pdf")
        self.assertEqual(self.store.load(locator), data)
        self.assertEqual(self.store.load("/" + locator), data)
        self.assertTrue((self.root / "public" / "uploads" / "signed" / "signed_1_Contrato.pdf").is_file())

        artifact = self.store.fetch(locator)
        self.assertIs(artifact.backend, ArtifactBackendKind.FILESYSTEM)
        self.assertEqual(artifact.content_type, "application/pdf")

    def test_documents_folder(self) -> None:
        locator = self.store.save("document_1_a.pdf", b"%PDF-x", folder=ArtifactFolder.DOCUMENTS)
        self.assertEqual(locator, "uploads/documents/document_1_a.pdf")

    def test_never_overwrites(self) -> None:
        self.store.save("same.pdf", b"first")
        with self.assertRaises(PersistenceFailure):
            self.store.save("same.pdf", b"second")
        self.assertEqual(self.store.load("uploads/signed/same.pdf"), b"first")

    def test_missing_and_escaping_paths(self) -> None:
        with self.assertRaises(ArtifactUnavailable):
            self.store.load("uploads/signed/missing.pdf")
        with self.assertRaises(ArtifactUnavailable):
            self.store.load("../../etc/passwd")
        with self.assertRaises(ArtifactUnavailable):
            self.store.load("")

    def test_delete(self) -> None:
        locator = self.store.save("gone.pdf", b"data")
        self.assertTrue(self.store.exists(locator))
        self.assertTrue(self.store.delete(locator))
        self.assertFalse(self.store.exists(locator))
        self.assertFalse(self.store.delete(locator))


class TestBlobStore(_StoreTestBase):
    managed_mode = True

    def test_save_and_load(self) -> None:
        data = make_pdf()
        locator = self.store.save("signed_1_Contrato.pdf", data)
        self.assertRegex(locator, r"^/api/document-files/\d+$")
        self.assertEqual(self.store.load(locator), data)
        self.assertIs(self.store.active_kind, ArtifactBackendKind.BLOB)
        self.assertIs(self.store.fetch(locator).backend, ArtifactBackendKind.BLOB)

    def test_deleted_row_is_unavailable(self) -> None:
        locator = self.store.save("x.pdf", b"%PDF-data")
        self.assertTrue(self.store.delete(locator))
        with self.assertRaises(ArtifactUnavailable):
            self.store.load(locator)

    def test_bad_blob_id(self) -> None:
        with self.assertRaises(ArtifactUnavailable):
            self.store.load("/api/document-files/abc")

    def test_non_ascii_digit_blob_id(self) -> None:
        locator = "/api/document-files/²"
        with self.assertRaises(ArtifactUnavailable):
            self.store.load(locator)
        with self.assertRaises(ArtifactUnavailable):
            self.store.backend_for(locator).content_type(locator)
        with self.assertRaises(ArtifactUnavailable):
            self.store.fetch(locator)
        self.assertFalse(self.store.exists(locator))
        self.assertFalse(self.store.delete(locator))

    def test_filesystem_locators_still_resolve(self) -> None:
        fs_file = self.root / "public" / "uploads" / "documents" / "legacy.pdf"
        fs_file.parent.mkdir(parents=True)
        fs_file.write_bytes(b"%PDF-legacy")
        self.assertEqual(self.store.load("/uploads/documents/legacy.pdf"), b"%PDF-legacy")


if __name__ == "__main__":
    unittest.main()
