"""
signing/tests/test_bootstrap.py

SigningContainer wiring from configuration.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.config.config_service import ConfigService
from signing.adapters.current_user_provider import ROLE_ADMIN, CurrentUser, StaticCurrentUserProvider
from signing.bootstrap import SigningContainer
from signing.models.records import ArtifactBackendKind
from signing.tests.fixtures.pdf_factory import make_pdf, png_data_uri


class TestSigningContainer(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _config(self, managed: bool) -> ConfigService:
        return ConfigService(
            machine_ini=None,
            environ={},
            overrides={"Storage": {"managed_mode": str(managed).lower()}},
            base_dir=self.base,
        )

    def test_backend_follows_managed_mode(self) -> None:
        users = StaticCurrentUserProvider(None)
        with SigningContainer(self._config(True), users) as container:
            self.assertIs(container.store.active_kind, ArtifactBackendKind.BLOB)
        with SigningContainer(self._config(False), users) as container:
            self.assertIs(container.store.active_kind, ArtifactBackendKind.FILESYSTEM)

    def test_upload_and_sign_through_container(self) -> None:
        users = StaticCurrentUserProvider(CurrentUser(id=1, name="Admin", role=ROLE_ADMIN))
        with SigningContainer(self._config(False), users) as container:
            doc = container.document_service.register_document(
                title="Contrato.pdf", description=None, worker_id=7, filename="Contrato.pdf", data=make_pdf(),
            )
            users.set_user(CurrentUser(id=7, name="Maria Lopez"))
            result = container.signing_service.sign_document(doc.id, png_data_uri())

            self.assertTrue(result.success, result)
            self.assertTrue((self.base / "public" / result.artifact_locator).is_file())
            self.assertTrue((self.base / "databases" / "signature.key").is_file())
            self.assertTrue(container.event_logger.query_logs(event="signed"))


if __name__ == "__main__":
    unittest.main()
