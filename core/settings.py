"""Persisted user settings (PIN hash, webhook, armed flags)."""

import logging
import threading
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import config
from core.errors import ValidationError
from storage.json_store import JsonStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    """User settings. ``blocking_enabled`` / ``website_blocking_enabled``
    persist the engine's armed flags across restarts."""

    pin_hash: Optional[str] = None
    webhook_url: Optional[str] = None
    webhook_enabled: bool = False
    send_block_notifications: bool = False
    send_unblock_notifications: bool = False
    send_killswitch_notifications: bool = True
    send_violation_notifications: bool = False
    is_setup_complete: bool = False
    blocking_enabled: bool = False
    website_blocking_enabled: bool = False

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is bool and not isinstance(value, bool):
                raise ValidationError(f"{f.name} must be a boolean, got {value!r}")
        if self.webhook_url:
            parsed = urlparse(self.webhook_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValidationError(f"Webhook URL must be an http(s) URL, got {self.webhook_url!r}")
        elif self.webhook_enabled:
            raise ValidationError("Webhook notifications need a webhook URL")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        """Build settings from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class SettingsManager:
    """
    Loads and saves AppSettings.

    Updates are validated and written before the in-memory copy changes.
    """

    def __init__(self, store: JsonStore):
        self.store = store
        self._lock = threading.Lock()
        self._cached: Optional[AppSettings] = None
        self._version = -1

    def load(self) -> AppSettings:
        """
        Current settings; defaults if nothing is stored or the file is invalid.
        """
        with self._lock:
            version = self.store.version(config.STORAGE_SETTINGS)
            if self._cached is not None and version == self._version:
                return self._cached
            data = self.store.get(config.STORAGE_SETTINGS)
            settings = AppSettings()
            if isinstance(data, dict):
                try:
                    settings = AppSettings.from_dict(data)
                except (ValidationError, TypeError) as e:
                    logger.warning(f"Invalid settings file, using defaults: {e}")
            self._cached = settings
            self._version = version
            return settings

    def update(self, **changes: Any) -> AppSettings:
        """
        Change settings fields.

        Raises:
            ValidationError: Unknown field or invalid value.
            PersistenceError: If saving fails (settings unchanged).
        """
        known = {f.name for f in fields(AppSettings)}
        unknown = changes.keys() - known
        if unknown:
            raise ValidationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        current = self.load()
        try:
            updated = replace(current, **changes)
        except TypeError as e:
            raise ValidationError(str(e)) from e
        with self._lock:
            self.store.set(config.STORAGE_SETTINGS, updated.to_dict())
            self._cached = updated
            self._version = self.store.version(config.STORAGE_SETTINGS)
        logger.debug(f"Settings updated: {sorted(changes)}")
        return updated
