"""
Tests for tracking/events.py - the capped audit log.
"""

import sys
import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from core.errors import PersistenceError, ValidationError
from storage.json_store import JsonStore
from tracking.events import EventRecord, EventRecorder


class TestEventRecorder(unittest.TestCase):
    """Capped, newest-first event log."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = JsonStore(Path(self._tmp.name))
        self.recorder = EventRecorder(self.store, max_events=3)
        self.base = datetime(2026, 10, 21, 12, 0)

    def _append(self, n):
        for i in range(n):
            self.recorder.append(
                config.EVENT_VIOLATION, f"app{i}", f"Closed app{i}", timestamp=self.base + timedelta(seconds=i)
            )

    def test_newest_first(self):
        """Events list newest first."""
        self._append(2)
        self.assertEqual([r.target for r in self.recorder.list()], ["app1", "app0"])

    def test_cap_drops_oldest(self):
        """The oldest events drop off past the cap."""
        self._append(5)
        self.assertEqual(len(self.recorder), 3)
        self.assertEqual([r.target for r in self.recorder.list()], ["app4", "app3", "app2"])

    def test_default_cap(self):
        """The cap defaults to the configured maximum."""
        recorder = EventRecorder(self.store)
        self.assertEqual(recorder.max_events, config.MAX_EVENTS)

    def test_records_survive_reload(self):
        """Events persist across instances."""
        record = self.recorder.append(config.EVENT_BLOCK, "reddit.com", "Added website block")
        reloaded = EventRecorder(JsonStore(Path(self._tmp.name))).list()
        self.assertEqual(reloaded, [record])

    def test_clear(self):
        """Clearing empties the log."""
        self._append(2)
        self.recorder.clear()
        self.assertEqual(self.recorder.list(), [])

    def test_clear_failure_propagates(self):
        """A failed clear raises and keeps the log."""
        self._append(1)
        with patch.object(self.store, "set", side_effect=PersistenceError("disk full")):
            with self.assertRaises(PersistenceError):
                self.recorder.clear()
        self.assertEqual(len(self.recorder), 1)

    def test_append_is_best_effort(self):
        """A failed append is logged, not raised."""
        with patch.object(self.store, "set", side_effect=PersistenceError("disk full")):
            record = self.recorder.append(config.EVENT_KILLSWITCH, "System", "Killswitch activated")
        self.assertEqual(record.kind, config.EVENT_KILLSWITCH)
        self.assertEqual(len(self.recorder), 0)

    def test_invalid_stored_records_skipped(self):
        """Malformed stored records are skipped."""
        self._append(1)
        events = self.store.get(config.STORAGE_EVENTS)
        events.append({"kind": "block"})
        self.store.set(config.STORAGE_EVENTS, events)
        self.assertEqual(len(self.recorder.list()), 1)

    def test_rejects_non_positive_cap(self):
        """The cap must be positive."""
        with self.assertRaises(ValueError):
            EventRecorder(self.store, max_events=0)


class TestEventRecord(unittest.TestCase):
    """Event record parsing."""

    def test_from_dict_requires_timestamp(self):
        """A record without a timestamp is invalid."""
        with self.assertRaises(ValidationError):
            EventRecord.from_dict({"id": "1", "kind": "block"})


if __name__ == "__main__":
    unittest.main()
