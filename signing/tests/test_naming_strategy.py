"""
signing/tests/test_naming_strategy.py

Artifact names for signed documents and uploads.
"""

from __future__ import annotations

import re
import unittest

from signing.logic.naming_strategy import DefaultPrefixStrategy, NamingContext, upload_name


class TestDefaultPrefixStrategy(unittest.TestCase):
    def setUp(self) -> None:
        self.naming = DefaultPrefixStrategy()

    def test_signed_and_fallback_prefixes(self) -> None:
        name = self.naming.propose_name(NamingContext("Contrato.pdf", False, 1700000000000))
        self.assertRegex(name, r"^signed_1700000000000_[0-9a-f]{8}_Contrato\.pdf$")
        name = self.naming.propose_name(NamingContext("Contrato.pdf", True, 1700000000000))
        self.assertRegex(name, r"^fallback_signed_1700000000000_[0-9a-f]{8}_Contrato\.pdf$")

    def test_unsafe_titles_are_cleaned(self) -> None:
        name = self.naming.propose_name(NamingContext("../Año 2024/contrato final", False, 1))
        self.assertNotIn("/", name)
        self.assertTrue(name.endswith(".pdf"))
        self.assertRegex(name, r"^signed_1_[0-9a-f]{8}_[A-Za-z0-9._-]+\.pdf$")
        self.assertTrue(self.naming.propose_name(NamingContext("///", False, 1)).endswith("_document.pdf"))

    def test_names_do_not_collide(self) -> None:
        ctx = NamingContext("Contrato.pdf", False, 5)
        self.assertNotEqual(self.naming.propose_name(ctx), self.naming.propose_name(ctx))

    def test_only_propose_name_is_required(self) -> None:
        public = {n for n in vars(DefaultPrefixStrategy) if not n.startswith("_")}
        self.assertEqual(public, {"propose_name"})


class TestUploadName(unittest.TestCase):
    def test_pdf_suffix_added(self) -> None:
        self.assertTrue(re.match(r"^document_42_[0-9a-f]{8}_scan\.pdf$", upload_name("scan", 42)))
        self.assertTrue(upload_name("Contrato.pdf", 42).endswith("_Contrato.pdf"))


if __name__ == "__main__":
    unittest.main()
