"""Tests for libreprobe.models -- outcomes, results and their serialisation."""

import dataclasses
import json
import unittest
from datetime import datetime, timezone

from libreprobe.exceptions import ResultValidationError, TotalFailureError
from libreprobe.models import (
    HistoryRecord,
    PingOutcome,
    ProbeOutcome,
    ServerStats,
    SpeedTestResult,
    TestSettings,
)


class TestProbeOutcome(unittest.TestCase):
    def test_status(self):
        self.assertEqual(ProbeOutcome.complete(10.0).status, "ok")
        self.assertEqual(ProbeOutcome.degraded(5.0, "cut short").status, "partial")
        self.assertEqual(ProbeOutcome.failure("refused").status, "failed")

    def test_ping_outcome_defaults(self):
        outcome = PingOutcome(value=12.0)
        self.assertEqual(outcome.jitter, 0.0)
        self.assertEqual(outcome.samples, ())
        self.assertEqual(outcome.status, "ok")


class TestSpeedTestResult(unittest.TestCase):
    def test_empty_result(self):
        result = SpeedTestResult(server_name="A", server_url="http://a/")
        self.assertFalse(result.has_measurements)
        self.assertEqual(result.server_info, {})
        self.assertEqual(result.failed_steps, 0)

    def test_single_measurement_counts(self):
        result = SpeedTestResult(server_name="A", server_url="http://a/", jitter=0.0)
        self.assertTrue(result.has_measurements)

    def test_to_dict_is_json_ready(self):
        result = SpeedTestResult(
            server_name="A",
            server_url="http://a/",
            ping=10.0,
            errors=("download test failed: refused",),
        )
        data = json.loads(json.dumps(result.to_dict()))
        self.assertIsNone(data["download_speed"])
        self.assertEqual(data["errors"], ["download test failed: refused"])
        self.assertEqual(data["notes"], [])

    def test_frozen(self):
        result = SpeedTestResult(server_name="A", server_url="http://a/")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            result.server_name = "B"


class TestPersistenceViews(unittest.TestCase):
    def test_history_record_timestamp(self):
        record = HistoryRecord(
            id=7,
            test_timestamp=datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc),
            server_name="A",
            server_url="http://a/",
        )
        self.assertEqual(record.to_dict()["test_timestamp"], "2025-01-15T10:30:00+00:00")

    def test_server_stats(self):
        stats = ServerStats(server_url="http://a/", avg_ping=12.5, count=4)
        self.assertEqual(stats.to_dict()["count"], 4)
        self.assertIsNone(stats.to_dict()["avg_download"])


class TestSettingsModel(unittest.TestCase):
    def test_defaults(self):
        settings = TestSettings()
        self.assertEqual(settings.download_size_mb, 50)
        self.assertEqual(settings.upload_size_mb, 10)
        self.assertEqual(settings.small_upload_size_mb, 1)
        self.assertEqual(settings.ping_count, 10)
        self.assertEqual(settings.to_dict()["ping_timeout"], 5.0)


class TestExceptions(unittest.TestCase):
    def test_total_failure_carries_result(self):
        result = SpeedTestResult(server_name="A", server_url="http://a/")
        exc = TotalFailureError("all tests failed: x", result)
        self.assertIs(exc.result, result)
        self.assertEqual(str(exc), "all tests failed: x")

    def test_validation_error_message(self):
        exc = ResultValidationError(["server_url is required", "ping must be a finite non-negative number"])
        self.assertEqual(
            str(exc),
            "Result validation failed: server_url is required, "
            "ping must be a finite non-negative number",
        )


if __name__ == "__main__":
    unittest.main()
