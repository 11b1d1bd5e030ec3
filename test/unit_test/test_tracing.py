"""
Unit tests for request tracing helpers
"""

import logging
import sys
import threading
import unittest
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from dex_relay.infra.tracing import (
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
    log_with_correlation,
    set_correlation_id,
)


class TestCorrelationId(unittest.TestCase):
    """Tests for correlation ID management"""

    def test_generate_correlation_id(self):
        cid = generate_correlation_id()
        self.assertEqual(len(cid), 12)
        self.assertNotEqual(cid, generate_correlation_id())

    def test_set_and_reset(self):
        token = set_correlation_id("abc")
        try:
            self.assertEqual(get_correlation_id(), "abc")
        finally:
            from dex_relay.infra import tracing
            tracing._correlation_id.reset(token)
        self.assertIsNone(get_correlation_id())

    def test_context_scopes_id(self):
        self.assertIsNone(get_correlation_id())
        with CorrelationContext("addLiquidity") as cid:
            self.assertTrue(cid.startswith("addLiquidity_"))
            self.assertEqual(get_correlation_id(), cid)
        self.assertIsNone(get_correlation_id())

    def test_nested_context_reuses_id(self):
        with CorrelationContext("outer") as outer:
            with CorrelationContext("inner") as inner:
                self.assertEqual(inner, outer)
            self.assertEqual(get_correlation_id(), outer)

    def test_threads_do_not_share_ids(self):
        seen = {}

        def worker(name):
            with CorrelationContext(name) as cid:
                seen[name] = (cid, get_correlation_id())

        threads = [threading.Thread(target=worker, args=(f"op{i}",)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len({cid for cid, _ in seen.values()}), 4)
        for cid, current in seen.values():
            self.assertEqual(cid, current)


class TestLogWithCorrelation(unittest.TestCase):
    """Tests for structured dispatch logging"""

    def test_log_line_contains_context(self):
        logger = logging.getLogger("dex_relay.test_tracing")
        with self.assertLogs(logger, level="INFO") as logs:
            with CorrelationContext("swap") as cid:
                log_with_correlation(logger, logging.INFO, "POST relayer", "swap", state="RELAYING")

        self.assertEqual(len(logs.records), 1)
        record = logs.records[0]
        self.assertIn(f"[{cid}]", record.getMessage())
        self.assertIn("[swap] [RELAYING] POST relayer", record.getMessage())
        self.assertEqual(record.correlation_id, cid)
        self.assertEqual(record.dispatch_state, "RELAYING")


if __name__ == "__main__":
    unittest.main()
