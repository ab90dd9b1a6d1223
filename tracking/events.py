"""Audit log of blocking events (block, unblock, violation, killswitch)."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import config
from core.errors import PersistenceError, ValidationError
from storage.json_store import JsonStore

logger = logging.getLogger(__name__)

VALID_EVENT_TYPES = {
    config.EVENT_BLOCK,
    config.EVENT_UNBLOCK,
    config.EVENT_KILLSWITCH,
    config.EVENT_VIOLATION,
}


@dataclass(frozen=True)
class EventRecord:
    """A single audit entry."""

    kind: str
    target: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "target": self.target,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventRecord":
        try:
            return cls(
                id=str(data["id"]),
                kind=str(data["kind"]),
                target=str(data.get("target", "")),
                message=str(data.get("message", "")),
                timestamp=datetime.fromisoformat(data["timestamp"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid event record {data!r}: {e}") from e


class EventRecorder:
    """
    Bounded, persisted event log.

    Keeps the most recent ``max_events`` records; the oldest are dropped on
    overflow. Records are stored newest first.
    """

    def __init__(self, store: JsonStore, max_events: int = config.MAX_EVENTS):
        """
        Initialize the recorder.

        Args:
            store: Key-value store holding the log.
            max_events: Maximum number of records kept.
        """
        if max_events < 1:
            raise ValueError("max_events must be at least 1")
        self.store = store
        self.max_events = max_events
        self._lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        data = self.store.get(config.STORAGE_EVENTS, [])
        return data if isinstance(data, list) else []

    def append(
        self,
        kind: str,
        target: str,
        message: str,
        timestamp: Optional[datetime] = None,
    ) -> EventRecord:
        """
        Record an event.

        Saving is best effort: a storage failure is logged and the record
        is still returned, so enforcement and the killswitch never fail
        because the log could not be written.
        """
        if kind not in VALID_EVENT_TYPES:
            # Log warning but don't crash - allows forward compatibility
            logger.warning(f"Unknown event type: {kind}")

        record = EventRecord(
            kind=kind,
            target=target,
            message=message,
            timestamp=timestamp or datetime.now(),
        )
        with self._lock:
            try:
                events = self._read()
                events.insert(0, record.to_dict())
                del events[self.max_events:]
                self.store.set(config.STORAGE_EVENTS, events)
            except PersistenceError as e:
                logger.error(f"Failed to record {kind} event for {target}: {e}")
        logger.debug(f"Event [{kind}] {target}: {message}")
        return record

    def list(self) -> List[EventRecord]:
        """All records, newest first."""
        records: List[EventRecord] = []
        for item in self._read():
            try:
                records.append(EventRecord.from_dict(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid event: {e}")
        return records

    def clear(self) -> None:
        """
        Delete all records. Irreversible.

        Raises:
            PersistenceError: If the empty log cannot be saved.
        """
        with self._lock:
            self.store.set(config.STORAGE_EVENTS, [])
        logger.info("Event log cleared")

    def __len__(self) -> int:
        return len(self._read())
