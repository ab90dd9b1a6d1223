"""
Enforcement state shared by the engine, the scheduler ticks and the
authorization gate.

All mutation goes through EngineState methods, which hold a single lock so
the app tick, the website tick and user commands never interleave their
reads and writes of the armed flags or the cooldown table.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class CooldownTracker:
    """
    Remembers when each kill target was last killed.

    A target may not be killed again until ``window`` has elapsed since its
    last kill. Not thread-safe on its own; EngineState serialises access.
    """

    def __init__(self, window: timedelta):
        self.window = window
        self._last_kill: Dict[str, datetime] = {}

    def is_cooling(self, target: str, now: datetime) -> bool:
        """True if target was killed less than ``window`` ago."""
        last = self._last_kill.get(target)
        return last is not None and now - last < self.window

    def remaining(self, target: str, now: datetime) -> timedelta:
        """Time left before target may be killed again (zero if none)."""
        last = self._last_kill.get(target)
        if last is None:
            return timedelta(0)
        return max(timedelta(0), self.window - (now - last))

    def record(self, target: str, now: datetime) -> None:
        self._last_kill[target] = now

    def clear(self) -> None:
        self._last_kill.clear()

    def __len__(self) -> int:
        return len(self._last_kill)


class EngineState:
    """
    Master switches for enforcement.

    ``armed`` gates all blocking; ``website_armed`` additionally gates
    browser kills. Disarming clears the cooldown table and the website
    grace marker so a later re-arm starts fresh.
    """

    def __init__(
        self,
        cooldown_window: timedelta,
        armed: bool = False,
        website_armed: bool = False,
    ):
        self._lock = threading.RLock()
        self._armed = armed
        self._website_armed = website_armed
        self.cooldowns = CooldownTracker(cooldown_window)
        # When website rules were first seen active (for the grace period)
        self._website_active_since: Optional[datetime] = None

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def website_armed(self) -> bool:
        return self._website_armed

    @property
    def website_active_since(self) -> Optional[datetime]:
        return self._website_active_since

    def arm(self) -> bool:
        """Turn enforcement on. Returns True if the state changed."""
        with self._lock:
            if self._armed:
                return False
            self._armed = True
        logger.info("Enforcement armed")
        return True

    def disarm(self, include_website: bool = False) -> bool:
        """
        Turn enforcement off and forget all cooldowns.

        Args:
            include_website: Also clear the website sub-toggle, so re-arming
                does not resume website enforcement (killswitch behaviour).

        Returns:
            True if either flag changed.
        """
        with self._lock:
            changed = self._armed or (include_website and self._website_armed)
            self._armed = False
            if include_website:
                self._website_armed = False
            self._reset_website_tracking()
        if changed:
            logger.info("Enforcement disarmed")
        return changed

    def set_website_armed(self, enabled: bool) -> bool:
        """Toggle website enforcement. Returns True if the state changed."""
        with self._lock:
            if self._website_armed == enabled:
                return False
            self._website_armed = enabled
            if not enabled:
                self._reset_website_tracking()
        logger.info(f"Website enforcement {'armed' if enabled else 'disarmed'}")
        return True

    def _reset_website_tracking(self) -> None:
        self.cooldowns.clear()
        self._website_active_since = None

    def mark_website_rules_active(self, now: datetime) -> datetime:
        """Record when website rules became active; returns the stored instant."""
        with self._lock:
            if self._website_active_since is None:
                self._website_active_since = now
                logger.info("Website rules active - grace period started")
            return self._website_active_since

    def mark_website_rules_inactive(self) -> None:
        with self._lock:
            if self._website_active_since is not None:
                logger.info("No website rules active")
            self._website_active_since = None

    def snapshot(self) -> Dict[str, object]:
        """Plain-dict copy of the current state for display."""
        with self._lock:
            return {
                "armed": self._armed,
                "website_armed": self._website_armed,
                "website_active_since": self._website_active_since,
                "cooldown_targets": len(self.cooldowns),
            }
