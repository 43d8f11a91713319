"""
core/tests/test_config_service.py

Layer precedence and typing of ConfigService.
Uses unittest to avoid external test dependencies.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.config.config_service import DEFAULTS_INI, ConfigService


class TestConfigService(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_defaults(self) -> None:
        cfg = ConfigService(machine_ini=None, environ={}, base_dir=self.base)
        self.assertFalse(cfg.storage.managed_mode)
        self.assertEqual(cfg.storage.blob_prefix, "/api/document-files")
        self.assertEqual(cfg.signing.strategy_timeout, 30.0)
        self.assertEqual(cfg.signing.x_ratio, 0.70)
        self.assertEqual(cfg.signing.text_font_size, 14)
        self.assertEqual(cfg.database.signing, self.base / "databases" / "signing.db")
        self.assertEqual(cfg.storage.document_root, self.base / "public")
        self.assertEqual(cfg.meta_source("Storage", "managed_mode")["layer"],
                         "defaults.ini" if DEFAULTS_INI.exists() else "code")

    def test_env_overrides_defaults(self) -> None:
        cfg = ConfigService(
            machine_ini=None,
            environ={"DOCSIGN_STORAGE__MANAGED_MODE": "true", "DOCSIGN_SIGNING__STRATEGY_TIMEOUT": "5"},
            base_dir=self.base,
        )
        self.assertTrue(cfg.storage.managed_mode)
        self.assertEqual(cfg.signing.strategy_timeout, 5.0)
        self.assertEqual(cfg.meta_source("Storage", "managed_mode")["layer"], "env")

    def test_machine_ini_beats_env_and_override_beats_all(self) -> None:
        machine = self.base / "config.ini"
        machine.write_text("[Logging]\nlevel = WARNING\n\n[Database]\nsigning = /srv/sign.db\n", encoding="utf-8")
        cfg = ConfigService(
            machine_ini=machine,
            environ={"DOCSIGN_LOGGING__LEVEL": "DEBUG"},
            overrides={"Signing": {"image_width": "200"}},
            base_dir=self.base,
        )
        self.assertEqual(cfg.logging.level, "WARNING")
        self.assertEqual(cfg.database.signing, Path("/srv/sign.db"))
        self.assertEqual(cfg.signing.image_width, 200.0)
        self.assertEqual(cfg.meta_source("Signing", "image_width")["layer"], "override")

    def test_get_with_cast(self) -> None:
        cfg = ConfigService(machine_ini=None, environ={}, base_dir=self.base)
        self.assertEqual(cfg.get("Signing", "image_height", cast=float), 60.0)
        self.assertIs(cfg.get("Storage", "managed_mode", cast=bool), False)
        self.assertIsNone(cfg.get("Storage", "unknown"))


if __name__ == "__main__":
    unittest.main()
