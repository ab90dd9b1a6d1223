"""
Tests for core/settings.py - persisted user settings.
"""

import sys
import tempfile
import unittest
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from core.errors import ValidationError
from core.settings import AppSettings, SettingsManager
from storage.json_store import JsonStore


class TestAppSettings(unittest.TestCase):
    """Settings validation."""

    def test_defaults(self):
        """Default settings."""
        settings = AppSettings()
        self.assertIsNone(settings.pin_hash)
        self.assertFalse(settings.webhook_enabled)
        self.assertTrue(settings.send_killswitch_notifications)
        self.assertFalse(settings.blocking_enabled)

    def test_enabled_webhook_needs_url(self):
        """An enabled webhook needs a URL."""
        with self.assertRaises(ValidationError):
            AppSettings(webhook_enabled=True)

    def test_webhook_url_must_be_http(self):
        """Webhook URLs must be http(s)."""
        with self.assertRaises(ValidationError):
            AppSettings(webhook_url="ftp://example.com/hook")
        AppSettings(webhook_url="https://discord.com/api/webhooks/1/abc", webhook_enabled=True)

    def test_flags_must_be_booleans(self):
        """Flags must be real booleans."""
        with self.assertRaises(ValidationError):
            AppSettings(blocking_enabled="yes")

    def test_from_dict_ignores_unknown_keys(self):
        """Unknown stored keys are ignored."""
        settings = AppSettings.from_dict({"blocking_enabled": True, "theme": "dark"})
        self.assertTrue(settings.blocking_enabled)


class TestSettingsManager(unittest.TestCase):
    """Loading and saving settings."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = JsonStore(Path(self._tmp.name))
        self.manager = SettingsManager(self.store)

    def test_load_defaults_when_empty(self):
        """Empty storage gives defaults."""
        self.assertEqual(self.manager.load(), AppSettings())

    def test_update_persists(self):
        """Updates are saved."""
        self.manager.update(blocking_enabled=True, is_setup_complete=True)
        reloaded = SettingsManager(JsonStore(Path(self._tmp.name))).load()
        self.assertTrue(reloaded.blocking_enabled)
        self.assertTrue(reloaded.is_setup_complete)

    def test_unknown_field_rejected(self):
        """Unknown fields are rejected."""
        with self.assertRaises(ValidationError):
            self.manager.update(volume=11)

    def test_invalid_update_not_applied(self):
        """Invalid updates are not saved."""
        with self.assertRaises(ValidationError):
            self.manager.update(webhook_enabled=True)
        self.assertFalse(self.manager.load().webhook_enabled)
        self.assertIsNone(self.store.get(config.STORAGE_SETTINGS))

    def test_invalid_stored_settings_fall_back_to_defaults(self):
        """Corrupt stored settings give defaults."""
        self.store.set(config.STORAGE_SETTINGS, {"blocking_enabled": "definitely"})
        self.assertEqual(self.manager.load(), AppSettings())

    def test_sees_changes_from_other_manager(self):
        """Changes from another manager are visible."""
        self.manager.load()
        SettingsManager(self.store).update(website_blocking_enabled=True)
        self.assertTrue(self.manager.load().website_blocking_enabled)


if __name__ == "__main__":
    unittest.main()
