"""
JSON key-value persistence for Holdfast.

Each key is stored in its own ``<key>.json`` file inside a data directory.
Writes are atomic (temp file + rename). Reads pick up changes made by other
processes (e.g. the CLI editing rules while the daemon runs) by comparing
file modification times.
"""

import copy
import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from core.errors import PersistenceError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")

_MISSING = object()


class JsonStore:
    """
    Key-value store backed by one JSON file per key.

    Values must be JSON-serialisable (dicts, lists, strings, numbers,
    booleans, None). Callers always receive copies, so mutating a returned
    value never changes the stored one.
    """

    def __init__(self, directory: Path):
        """
        Initialize the store.

        Args:
            directory: Directory holding the JSON files. Created on first write.
        """
        self.directory = Path(directory)
        self._lock = threading.Lock()
        # key -> (mtime_ns or None, value or _MISSING)
        self._cache: Dict[str, Tuple[Optional[int], Any]] = {}
        self._versions: Dict[str, int] = {}

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def _refresh(self, key: str) -> Any:
        """Reload a key from disk if its file changed. Caller holds the lock."""
        path = self._path_for(key)
        try:
            mtime = path.stat().st_mtime_ns
        except FileNotFoundError:
            mtime = None
        except OSError as e:
            raise PersistenceError(f"Cannot access {path}: {e}") from e

        cached = self._cache.get(key)
        if cached is not None and cached[0] == mtime:
            return cached[1]

        value = _MISSING
        if mtime is not None:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    value = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring corrupt storage file {path}: {e}")
            except OSError as e:
                raise PersistenceError(f"Failed to read {path}: {e}") from e

        self._cache[key] = (mtime, value)
        self._versions[key] = self._versions.get(key, 0) + 1
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get the value stored under key.

        Args:
            key: Storage key.
            default: Returned when the key is absent or its file is corrupt.

        Returns:
            A copy of the stored value, or default.

        Raises:
            PersistenceError: If the file exists but cannot be read.
        """
        with self._lock:
            value = self._refresh(key)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def version(self, key: str) -> int:
        """
        Get a counter that changes whenever the value under key changes.

        Lets callers cache parsed objects and re-parse only on change.
        """
        with self._lock:
            self._refresh(key)
            return self._versions.get(key, 0)

    def set(self, key: str, value: Any) -> None:
        """
        Save a value atomically.

        Raises:
            PersistenceError: If the value cannot be serialised or written.
        """
        path = self._path_for(key)
        try:
            payload = json.dumps(value, indent=2)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Value for {key!r} is not JSON-serialisable: {e}") from e

        with self._lock:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                temp_fd, temp_path = tempfile.mkstemp(
                    suffix='.tmp',
                    prefix=f'{key}_',
                    dir=self.directory,
                )
                try:
                    with os.fdopen(temp_fd, 'w', encoding="utf-8") as f:
                        f.write(payload)
                    os.replace(temp_path, path)
                except Exception:
                    try:
                        os.unlink(temp_path)
                    except OSError:
                        pass
                    raise
                mtime = path.stat().st_mtime_ns
            except OSError as e:
                logger.error(f"Failed to save {key}: {e}")
                raise PersistenceError(f"Failed to write {path}: {e}") from e

            self._cache[key] = (mtime, json.loads(payload))
            self._versions[key] = self._versions.get(key, 0) + 1
        logger.debug(f"Saved {key} to {path}")

    def delete(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is a no-op.

        Raises:
            PersistenceError: If the file exists but cannot be removed.
        """
        path = self._path_for(key)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise PersistenceError(f"Failed to delete {path}: {e}") from e
            self._cache[key] = (None, _MISSING)
            self._versions[key] = self._versions.get(key, 0) + 1

    def keys(self) -> List[str]:
        """List the keys currently stored on disk."""
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
