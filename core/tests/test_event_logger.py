"""
core/tests/test_event_logger.py

SQLite event log: writes, queries and concurrent use.
"""

from __future__ import annotations

import tempfile
import threading
import unittest
from pathlib import Path

from core.logging.logic.logger import EventLogger


class TestEventLogger(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.log = EventLogger(Path(self._tmp.name) / "logs" / "events.db")

    def tearDown(self) -> None:
        self.log.close()
        self._tmp.cleanup()

    def test_log_and_fetch(self) -> None:
        self.log.log("signing", "signed", user_id=7, username="maria", reference_id="3", message="ok")
        entries = self.log.fetch_logs()
        self.assertEqual(len(entries), 1)
        entry = entries[0]
        self.assertEqual((entry.feature, entry.event, entry.user_id), ("signing", "signed", 7))
        self.assertEqual(entry.log_level, "INFO")
        self.assertIsNotNone(entry.timestamp.tzinfo)
        self.assertEqual(entry.as_dict()["reference_id"], "3")

    def test_unknown_level_is_stored_as_info(self) -> None:
        self.log.log("signing", "x", level="verbose")
        self.assertEqual(self.log.fetch_logs()[0].log_level, "INFO")

    def test_query_filters(self) -> None:
        self.log.log("signing", "signed", user_id=1, reference_id="1")
        self.log.log("signing", "fallback_used", user_id=1, reference_id="2", level="warning")
        self.log.log("documents", "document_registered", user_id=2, reference_id="2")

        self.assertEqual(len(self.log.query_logs(feature="signing")), 2)
        self.assertEqual(len(self.log.query_logs(reference_id="2")), 2)
        self.assertEqual([e.event for e in self.log.query_logs(level="WARNING")], ["fallback_used"])
        self.assertEqual(len(self.log.query_logs(user_id=2, event="document_registered")), 1)

    def test_concurrent_writers(self) -> None:
        def write(n: int) -> None:
            for i in range(20):
                self.log.log("signing", "signed", reference_id=f"{n}-{i}")

        threads = [threading.Thread(target=write, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(self.log.fetch_logs(limit=1000)), 80)


if __name__ == "__main__":
    unittest.main()
