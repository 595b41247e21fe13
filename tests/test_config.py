"""Unit tests for YAML settings and driver bootstrap."""

from pathlib import Path
import tempfile
import unittest
from unittest.mock import patch

from docmapper.core.config import AppSettings, bootstrap, configure_drivers, load_settings
from docmapper.drivers import DriverRegistry, MemoryDriver
from docmapper.exceptions import ConfigurationError


class SettingsTests(unittest.TestCase):
    """Validate settings parsing and defaults."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "config.yml"

    def _write(self, text: str) -> Path:
        self.path.write_text(text, encoding="utf-8")
        return self.path

    def test_missing_file_falls_back_to_defaults(self) -> None:
        """Return defaults and warn when the file does not exist."""
        with self.assertLogs("docmapper.core.config", level="WARNING"):
            settings = load_settings(self.path)
        self.assertEqual(settings, AppSettings())

    def test_values_are_read_from_yaml(self) -> None:
        """Read logging and driver sections."""
        settings = load_settings(
            self._write(
                "logging:\n"
                "  level: debug\n"
                "drivers:\n"
                "  default: mongodb\n"
                "  mongodb:\n"
                "    enabled: 'yes'\n"
                "    uri: mongodb://db:27017\n"
                "    database: people\n"
                "    timeout_ms: 250\n"
                "  firestore:\n"
                "    project_id: demo\n"
            )
        )
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.default_driver, "mongodb")
        self.assertTrue(settings.mongodb_enabled)
        self.assertEqual(settings.mongodb_uri, "mongodb://db:27017")
        self.assertEqual(settings.mongodb_database, "people")
        self.assertEqual(settings.mongodb_timeout_ms, 250)
        self.assertFalse(settings.firestore_enabled)
        self.assertEqual(settings.firestore_project_id, "demo")

    def test_invalid_values_use_defaults(self) -> None:
        """Fall back to defaults for malformed scalars."""
        with self.assertLogs("docmapper.core.config", level="WARNING"):
            settings = load_settings(
                self._write("drivers:\n  memory:\n    enabled: 3\n  mongodb:\n    timeout_ms: soon\n")
            )
        self.assertTrue(settings.memory_enabled)
        self.assertEqual(settings.mongodb_timeout_ms, 5000)

    def test_malformed_yaml_is_a_configuration_error(self) -> None:
        """Reject files that are not valid YAML mappings."""
        with self.assertRaises(ConfigurationError):
            load_settings(self._write("drivers: [unclosed\n"))
        with self.assertRaises(ConfigurationError):
            load_settings(self._write("- just\n- a list\n"))


class ConfigureDriversTests(unittest.TestCase):
    """Validate driver registration from settings."""

    def test_memory_driver_is_registered_as_default(self) -> None:
        """Register the memory driver under its name and as default."""
        registry = configure_drivers(AppSettings(), DriverRegistry())
        self.assertIsInstance(registry.instance("memory"), MemoryDriver)
        self.assertIs(registry.instance("default"), registry.instance("memory"))

    def test_default_must_be_enabled(self) -> None:
        """Reject a default driver that is not enabled."""
        with self.assertRaises(ConfigurationError):
            configure_drivers(AppSettings(default_driver="mongodb"), DriverRegistry())

    def test_mongodb_driver_uses_configured_database(self) -> None:
        """Connect lazily to the configured MongoDB database."""
        settings = AppSettings(mongodb_enabled=True, mongodb_database="people", default_driver="mongodb")
        with patch("pymongo.MongoClient") as client_cls:
            registry = configure_drivers(settings, DriverRegistry())
        client_cls.assert_called_once_with("mongodb://localhost:27017", serverSelectionTimeoutMS=5000)
        client_cls.return_value.__getitem__.assert_called_once_with("people")
        self.assertIs(registry.instance("default"), registry.instance("mongodb"))

    def test_bootstrap_configures_logging_and_drivers(self) -> None:
        """Apply the configured log level and register the drivers."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yml"
            path.write_text("logging:\n  level: warning\n", encoding="utf-8")
            registry = DriverRegistry()
            with patch("docmapper.core.config.setup_logging") as setup:
                settings = bootstrap(path, registry)
        setup.assert_called_once_with("WARNING")
        self.assertEqual(settings.log_level, "WARNING")
        self.assertIn("default", registry)


if __name__ == "__main__":
    unittest.main()
