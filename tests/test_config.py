"""Tests for libreprobe.config -- configuration persistence and typed views."""

import json
import os
import tempfile
import unittest
from unittest import mock

from libreprobe.config import (
    DEFAULTS,
    build_servers,
    build_settings,
    load_config,
    save_config,
    validate_settings,
)
from libreprobe.models import TestSettings


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("servers", "test", "database_url", "save_failed", "log_level", "log_file"):
            self.assertIn(key, DEFAULTS)

    def test_default_test_block(self):
        self.assertEqual(DEFAULTS["test"]["download_size_mb"], 50)
        self.assertEqual(DEFAULTS["test"]["upload_size_mb"], 10)
        self.assertEqual(DEFAULTS["test"]["small_upload_size_mb"], 1)
        self.assertEqual(DEFAULTS["test"]["ping_count"], 10)

    def test_database_url_is_sqlite(self):
        self.assertTrue(DEFAULTS["database_url"].startswith("sqlite:///"))


class TestLoadSaveConfig(unittest.TestCase):
    def test_load_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("libreprobe.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg["servers"], [])
                self.assertEqual(cfg["test"]["ping_count"], 10)

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("libreprobe.config._config_path", return_value=path):
                save_config({"servers": [{"url": "http://a"}], "test": {"ping_count": 3}})
                cfg = load_config()
                self.assertEqual(cfg["servers"], [{"url": "http://a"}])
                self.assertEqual(cfg["test"]["ping_count"], 3)
                # Defaults still present
                self.assertEqual(cfg["test"]["download_size_mb"], 50)
                self.assertTrue(cfg["save_failed"])

    def test_explicit_path(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "custom.json")
            with open(path, "w") as f:
                json.dump({"log_level": "DEBUG"}, f)
            cfg = load_config(path)
            self.assertEqual(cfg["log_level"], "DEBUG")

    def test_explicit_missing_path_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(FileNotFoundError):
                load_config(os.path.join(tmpdir, "nope.json"))

    def test_corrupt_file_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                f.write("NOT JSON")
            with mock.patch("libreprobe.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg["test"]["ping_count"], 10)

    def test_defaults_not_mutated(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("libreprobe.config._config_path", return_value=path):
                cfg = load_config()
                cfg["test"]["ping_count"] = 99
                cfg["servers"].append({"url": "x"})
            self.assertEqual(DEFAULTS["test"]["ping_count"], 10)
            self.assertEqual(DEFAULTS["servers"], [])


class TestBuildSettings(unittest.TestCase):
    def test_from_defaults(self):
        settings = build_settings({"test": dict(DEFAULTS["test"])})
        self.assertEqual(settings, TestSettings())

    def test_unknown_key_rejected(self):
        with self.assertRaises(ValueError):
            build_settings({"test": {"connections": 4}})

    def test_small_upload_above_full_rejected(self):
        with self.assertRaises(ValueError):
            validate_settings(TestSettings(upload_size_mb=1, small_upload_size_mb=2))

    def test_ping_count_bounds(self):
        with self.assertRaises(ValueError):
            validate_settings(TestSettings(ping_count=0))
        with self.assertRaises(ValueError):
            validate_settings(TestSettings(ping_count=101))

    def test_fractional_ping_count_rejected(self):
        with self.assertRaises(ValueError) as ctx:
            build_settings({"test": {"ping_count": 10.0}})
        self.assertIn("ping_count", str(ctx.exception))

    def test_fractional_download_size_rejected(self):
        with self.assertRaises(ValueError):
            build_settings({"test": {"download_size_mb": 2.5}})

    def test_boolean_values_rejected(self):
        with self.assertRaises(ValueError):
            validate_settings(TestSettings(ping_count=True))
        with self.assertRaises(ValueError):
            validate_settings(TestSettings(upload_timeout=True))

    def test_non_numeric_value_rejected(self):
        with self.assertRaises(ValueError):
            build_settings({"test": {"upload_size_mb": "10"}})

    def test_fractional_upload_size_allowed(self):
        settings = build_settings({"test": {"upload_size_mb": 2.5, "small_upload_size_mb": 0.5}})
        self.assertEqual(settings.small_upload_size_mb, 0.5)

    def test_non_positive_size_rejected(self):
        with self.assertRaises(ValueError):
            validate_settings(TestSettings(download_size_mb=0))

    def test_non_positive_timeout_rejected(self):
        with self.assertRaises(ValueError):
            validate_settings(TestSettings(ping_timeout=0))


class TestBuildServers(unittest.TestCase):
    def test_servers(self):
        servers = build_servers(
            {"servers": [{"url": "http://a", "name": "A"}, {"url": "http://b"}]}
        )
        self.assertEqual([s.name for s in servers], ["A", "http://b"])

    def test_missing_url(self):
        with self.assertRaises(ValueError) as ctx:
            build_servers({"servers": [{"url": "http://a"}, {"name": "B"}]})
        self.assertIn("#2", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
