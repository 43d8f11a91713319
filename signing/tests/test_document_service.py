"""
signing/tests/test_document_service.py

Upload, listings, status checks, artifact retrieval and cascading deletion.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.logging.logic.logger import EventLogger
from signing.adapters.artifact_store import build_artifact_store
from signing.adapters.current_user_provider import ROLE_ADMIN, CurrentUser, StaticCurrentUserProvider
from signing.adapters.sqlite_adapter import SQLiteAdapter
from signing.exceptions.errors import ArtifactUnavailable, NotFoundError, ValidationError
from signing.logic.document_service import DocumentService
from signing.logic.signing_service import DocumentSigningService
from signing.models.records import ArtifactBackendKind, DocumentStatus
from signing.repository.signing_repository import SigningRepository
from signing.tests.fixtures.pdf_factory import make_pdf

ADMIN = CurrentUser(id=1, name="Admin", role=ROLE_ADMIN)
WORKER = CurrentUser(id=7, name="Maria Lopez")


class _DocumentTestBase(unittest.TestCase):
    managed_mode = False
    backend_kind = ArtifactBackendKind.FILESYSTEM

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.db = SQLiteAdapter(self.root / "signing.db")
        self.events = EventLogger(self.root / "logs.db")
        self.store = build_artifact_store(managed_mode=self.managed_mode, db=self.db, document_root=self.root / "public")
        self.repo = SigningRepository(self.db)
        self.users = StaticCurrentUserProvider(ADMIN)
        self.documents = DocumentService(
            repository=self.repo, store=self.store, user_provider=self.users, event_logger=self.events,
        )
        self.signing = DocumentSigningService(repository=self.repo, store=self.store, user_provider=self.users)

    def tearDown(self) -> None:
        self.db.close()
        self.events.close()
        self._tmp.cleanup()

    def register(self, title: str = "Contrato", data: bytes | None = None):
        return self.documents.register_document(
            title=title, description="Contrato laboral", worker_id=WORKER.id,
            filename="Contrato.pdf", data=data if data is not None else make_pdf(),
        )


class TestDocumentService(_DocumentTestBase):
    def test_register_stores_original(self) -> None:
        doc = self.register()
        self.assertIs(doc.status, DocumentStatus.PENDING)
        self.assertTrue(doc.original_artifact_ref.startswith("uploads/documents/document_"))
        self.assertTrue(self.store.exists(doc.original_artifact_ref))
        self.assertEqual(doc.owner_admin_id, ADMIN.id)
        self.assertEqual(len(self.events.query_logs(event="document_registered")), 1)

    def test_register_rejects_non_pdf_and_workers(self) -> None:
        with self.assertRaises(ValidationError):
            self.register(data=b"plain text upload")
        with self.assertRaises(ValidationError):
            self.register(title="   ")
        self.users.set_user(WORKER)
        with self.assertRaises(ValidationError):
            self.register()

    def test_worker_listings_and_status(self) -> None:
        first = self.register("Contrato")
        second = self.register("Anexo")

        self.users.set_user(WORKER)
        self.assertTrue(self.signing.sign_document(first.id, "Maria Lopez").success)

        self.assertEqual([v.document_id for v in self.documents.list_pending()], [second.id])
        signed = self.documents.list_signed()
        self.assertEqual([v.document_id for v in signed], [first.id])
        self.assertIsNotNone(signed[0].signed_at)

        status = self.documents.check_document_status(first.id)
        self.assertIs(status.status, DocumentStatus.SIGNED)
        self.assertTrue(status.has_signed_file)
        status = self.documents.check_document_status(second.id)
        self.assertIs(status.status, DocumentStatus.PENDING)
        self.assertFalse(status.has_signed_file)

        with self.assertRaises(ValidationError):
            self.documents.list_documents()

    def test_admin_listing(self) -> None:
        doc = self.register()
        rows = self.documents.list_documents()
        self.assertEqual([d.id for d, _ in rows], [doc.id])
        self.assertIsNone(rows[0][1].signed_artifact_ref)

    def test_delete_removes_rows_and_artifacts(self) -> None:
        doc = self.register()
        self.users.set_user(WORKER)
        signed = self.signing.sign_document(doc.id, "Maria Lopez")
        self.users.set_user(ADMIN)

        self.documents.delete_document(doc.id)

        self.assertFalse(self.store.exists(doc.original_artifact_ref))
        self.assertFalse(self.store.exists(signed.artifact_locator))
        self.assertIsNone(self.repo.get_document_signature(doc.id))
        with self.assertRaises(NotFoundError):
            self.documents.check_document_status(doc.id)
        with self.assertRaises(NotFoundError):
            self.documents.delete_document(doc.id)
        self.assertEqual(len(self.events.query_logs(event="document_deleted")), 1)

    def test_other_admin_cannot_delete(self) -> None:
        doc = self.register()
        self.users.set_user(CurrentUser(id=2, name="Other", role=ROLE_ADMIN))
        with self.assertRaises(NotFoundError):
            self.documents.delete_document(doc.id)


class TestDocumentArtifact(_DocumentTestBase):
    def test_artifact_is_original_until_signed(self) -> None:
        original = make_pdf()
        doc = self.register(data=original)

        artifact = self.documents.get_document_artifact(doc.id)
        self.assertEqual(artifact.data, original)
        self.assertEqual(artifact.locator, doc.original_artifact_ref)
        self.assertIs(artifact.backend, self.backend_kind)

        self.users.set_user(WORKER)
        self.assertEqual(self.documents.get_document_artifact(str(doc.id)).data, original)
        signed = self.signing.sign_document(doc.id, "Maria Lopez")
        self.assertTrue(signed.success, signed)

        for user in (WORKER, ADMIN):
            with self.subTest(user=user.name):
                self.users.set_user(user)
                artifact = self.documents.get_document_artifact(doc.id)
                self.assertEqual(artifact.locator, signed.artifact_locator)
                self.assertEqual(artifact.content_type, "application/pdf")
                self.assertIs(artifact.backend, self.backend_kind)
                self.assertNotEqual(artifact.data, original)
                self.assertTrue(artifact.data.startswith(b"%PDF"))

    def test_artifact_hidden_from_other_users(self) -> None:
        doc = self.register()
        for user in (CurrentUser(id=8, name="Otro"), CurrentUser(id=2, name="Other", role=ROLE_ADMIN)):
            with self.subTest(user=user.name):
                self.users.set_user(user)
                with self.assertRaises(NotFoundError):
                    self.documents.get_document_artifact(doc.id)
        self.users.set_user(ADMIN)
        for doc_id in (12345, "abc", "²"):
            with self.subTest(doc_id=doc_id):
                with self.assertRaises(NotFoundError):
                    self.documents.get_document_artifact(doc_id)

    def test_artifact_with_missing_file(self) -> None:
        doc = self.register()
        self.assertTrue(self.store.delete(doc.original_artifact_ref))
        with self.assertRaises(ArtifactUnavailable):
            self.documents.get_document_artifact(doc.id)


class TestDocumentArtifactBlobBackend(TestDocumentArtifact):
    managed_mode = True
    backend_kind = ArtifactBackendKind.BLOB


if __name__ == "__main__":
    unittest.main()
