"""
Tests for core/state.py - armed flags, cooldowns and the website grace marker.
"""

import sys
import unittest
from datetime import datetime, timedelta
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.state import CooldownTracker, EngineState

T0 = datetime(2026, 10, 21, 12, 0)


class TestCooldownTracker(unittest.TestCase):
    """Per-target kill cooldowns."""

    def setUp(self):
        self.tracker = CooldownTracker(timedelta(seconds=30))

    def test_unknown_target_not_cooling(self):
        """Unseen targets are not cooling."""
        self.assertFalse(self.tracker.is_cooling("/usr/bin/firefox", T0))
        self.assertEqual(self.tracker.remaining("/usr/bin/firefox", T0), timedelta(0))

    def test_cooling_inside_window(self):
        """Targets cool until the window ends."""
        self.tracker.record("/usr/bin/firefox", T0)
        self.assertTrue(self.tracker.is_cooling("/usr/bin/firefox", T0 + timedelta(seconds=29, microseconds=999000)))
        self.assertEqual(self.tracker.remaining("/usr/bin/firefox", T0 + timedelta(seconds=10)), timedelta(seconds=20))

    def test_window_elapsed_exactly(self):
        """Cooling ends exactly at the window length."""
        self.tracker.record("/usr/bin/firefox", T0)
        self.assertFalse(self.tracker.is_cooling("/usr/bin/firefox", T0 + timedelta(seconds=30)))

    def test_targets_are_independent(self):
        """Each target has its own cooldown."""
        self.tracker.record("/usr/bin/firefox", T0)
        self.assertFalse(self.tracker.is_cooling("/usr/bin/chromium", T0))
        self.assertEqual(len(self.tracker), 1)


class TestEngineState(unittest.TestCase):
    """Armed flags and website tracking."""

    def setUp(self):
        self.state = EngineState(timedelta(seconds=30), armed=True, website_armed=True)

    def test_arm_reports_change(self):
        """arm() reports whether anything changed."""
        state = EngineState(timedelta(seconds=30))
        self.assertTrue(state.arm())
        self.assertFalse(state.arm())

    def test_disarm_clears_tracking_but_keeps_website_toggle(self):
        """Disarm resets tracking but keeps the website flag."""
        self.state.cooldowns.record("/usr/bin/firefox", T0)
        self.state.mark_website_rules_active(T0)
        self.assertTrue(self.state.disarm())
        self.assertFalse(self.state.armed)
        self.assertTrue(self.state.website_armed)
        self.assertEqual(len(self.state.cooldowns), 0)
        self.assertIsNone(self.state.website_active_since)

    def test_disarm_including_website(self):
        """Disarm can also clear the website flag."""
        self.state.disarm(include_website=True)
        self.assertFalse(self.state.armed)
        self.assertFalse(self.state.website_armed)

    def test_disabling_website_resets_tracking(self):
        """Turning websites off resets tracking."""
        self.state.cooldowns.record("/usr/bin/firefox", T0)
        self.assertTrue(self.state.set_website_armed(False))
        self.assertEqual(len(self.state.cooldowns), 0)
        self.assertFalse(self.state.set_website_armed(False))

    def test_grace_marker_keeps_first_instant(self):
        """The grace start is the first active instant."""
        self.assertEqual(self.state.mark_website_rules_active(T0), T0)
        self.assertEqual(self.state.mark_website_rules_active(T0 + timedelta(seconds=10)), T0)
        self.state.mark_website_rules_inactive()
        later = T0 + timedelta(minutes=1)
        self.assertEqual(self.state.mark_website_rules_active(later), later)

    def test_snapshot(self):
        """Snapshot copies the current state."""
        snapshot = self.state.snapshot()
        self.assertEqual(snapshot["armed"], True)
        self.assertEqual(snapshot["cooldown_targets"], 0)


if __name__ == "__main__":
    unittest.main()
