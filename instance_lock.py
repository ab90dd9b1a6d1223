"""
Instance Lock - Prevents two Holdfast enforcement daemons from running.

Cross-platform implementation using file locking:
- Unix (macOS/Linux): fcntl.flock()
- Windows: msvcrt.locking()

The lock is automatically released when the process terminates,
even on crashes, making this fail-safe.
"""

import os
import sys
import atexit
import logging
from pathlib import Path
from typing import Optional

import config

logger = logging.getLogger(__name__)

# Bytes locked on Windows (msvcrt cannot lock an empty file)
_WIN_LOCK_BYTES = 32


def _get_lock_file_path() -> Path:
    """Lock file location in the persistent user data directory."""
    return config.USER_DATA_DIR / ".holdfast_instance.lock"


class InstanceLock:
    """
    Cross-platform instance lock using file locking.

    The lock file holds the owner's PID so a second launch can report it.

    Usage:
        lock = InstanceLock()
        if not lock.acquire():
            print("Another instance is already running")
            sys.exit(1)
        # ... run daemon ...
        lock.release()  # Optional - released automatically on exit
    """

    def __init__(self, lock_file: Optional[Path] = None):
        """
        Initialize instance lock.

        Args:
            lock_file: Path to lock file (default: USER_DATA_DIR/.holdfast_instance.lock)
        """
        self.lock_file = lock_file or _get_lock_file_path()
        self._lock_handle = None
        self._acquired = False

    def _close_handle(self) -> None:
        if self._lock_handle is not None:
            try:
                self._lock_handle.close()
            except OSError:
                pass
            self._lock_handle = None

    def acquire(self) -> bool:
        """
        Try to acquire the instance lock.

        Returns:
            True if lock acquired (no other instance running)
            False if another instance is already running
        """
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            if sys.platform == 'win32':
                import msvcrt
                mode = 'r+b' if self.lock_file.exists() else 'w+b'
                self._lock_handle = open(self.lock_file, mode)
                msvcrt.locking(self._lock_handle.fileno(), msvcrt.LK_NBLCK, _WIN_LOCK_BYTES)
                self._lock_handle.seek(0)
                self._lock_handle.truncate()
                self._lock_handle.write(str(os.getpid()).encode('utf-8').ljust(_WIN_LOCK_BYTES, b'\0'))
            else:
                import fcntl
                # 'a+' so a failed attempt never truncates the owner's PID
                self._lock_handle = open(self.lock_file, 'a+')
                fcntl.flock(self._lock_handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                self._lock_handle.seek(0)
                self._lock_handle.truncate()
                self._lock_handle.write(str(os.getpid()))
            self._lock_handle.flush()
        except OSError as e:
            logger.debug(f"Instance lock not acquired: {e}")
            self._close_handle()
            return False

        self._acquired = True
        logger.debug(f"Instance lock acquired (PID: {os.getpid()})")
        return True

    def release(self) -> None:
        """
        Release the instance lock.

        Note: Lock is automatically released when process exits,
        but explicit release is cleaner.
        """
        if self._lock_handle is None:
            return
        if sys.platform == 'win32':
            import msvcrt
            try:
                self._lock_handle.seek(0)
                msvcrt.locking(self._lock_handle.fileno(), msvcrt.LK_UNLCK, _WIN_LOCK_BYTES)
            except OSError:
                pass
        # On Unix, closing the file releases flock automatically
        self._close_handle()
        self._acquired = False
        try:
            self.lock_file.unlink()
        except OSError:
            pass
        logger.debug("Instance lock released")

    def is_acquired(self) -> bool:
        """Check if lock is currently held by this instance."""
        return self._acquired

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


# Global instance for module-level functions
_instance_lock: Optional[InstanceLock] = None


def check_single_instance() -> bool:
    """
    Check if this is the only running Holdfast daemon.

    The lock is automatically registered with atexit for cleanup.

    Returns:
        True if this is the only instance (safe to proceed)
        False if another instance is running (should exit)
    """
    global _instance_lock

    if _instance_lock is not None:
        return _instance_lock.is_acquired()

    _instance_lock = InstanceLock()
    acquired = _instance_lock.acquire()
    if acquired:
        atexit.register(release_instance_lock)
    return acquired


def release_instance_lock() -> None:
    """Release the instance lock (called automatically on exit)."""
    global _instance_lock
    if _instance_lock is not None:
        _instance_lock.release()
        _instance_lock = None


def get_existing_pid(lock_file: Optional[Path] = None) -> Optional[int]:
    """
    Try to read the PID of an existing instance from the lock file.

    Returns:
        PID of existing instance, or None if not readable
    """
    lock_file = lock_file or _get_lock_file_path()
    try:
        content = lock_file.read_bytes().rstrip(b'\0').decode('utf-8').strip()
    except (OSError, UnicodeDecodeError):
        return None
    return int(content) if content.isdigit() else None
