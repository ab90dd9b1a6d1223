"""
Process inspection and termination.

Lists running processes and browsers and kills them by PID, using psutil
so the same code works on Windows, macOS and Linux.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import psutil

import config
from core.errors import EnforcementIOError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessInfo:
    """A running process as seen by the enforcement loop."""

    name: str
    path: str
    pid: Optional[int]


class ProcessInspector:
    """
    psutil-backed process listing and killing.
    """

    def __init__(
        self,
        browser_names: Sequence[str] = config.BROWSER_PROCESS_NAMES,
        kill_timeout: float = config.KILL_WAIT_TIMEOUT,
    ):
        """
        Initialize the inspector.

        Args:
            browser_names: Lowercase fragments identifying browser executables.
            kill_timeout: Seconds to wait for graceful termination before SIGKILL.
        """
        self.browser_names = tuple(name.lower() for name in browser_names)
        self.kill_timeout = kill_timeout

    def _iter_processes(self) -> Iterable[ProcessInfo]:
        try:
            processes = psutil.process_iter(["pid", "name", "exe"])
            for proc in processes:
                try:
                    info = proc.info
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
                yield ProcessInfo(
                    name=info.get("name") or "",
                    path=info.get("exe") or "",
                    pid=info.get("pid"),
                )
        except psutil.Error as e:
            raise EnforcementIOError(f"Failed to enumerate processes: {e}") from e
        except OSError as e:
            raise EnforcementIOError(f"Failed to enumerate processes: {e}") from e

    def list_processes(self) -> List[ProcessInfo]:
        """
        All running processes (one entry per PID).

        Raises:
            EnforcementIOError: If the process table cannot be read.
        """
        return list(self._iter_processes())

    def list_applications(self) -> List[ProcessInfo]:
        """
        Running processes deduplicated by name and sorted, for pickers
        that let the user choose an app to block.
        """
        seen = set()
        apps = []
        for proc in sorted(self._iter_processes(), key=lambda p: p.name.lower()):
            key = proc.name.lower()
            if not key or key in seen:
                continue
            seen.add(key)
            apps.append(proc)
        return apps

    def is_browser(self, name: str) -> bool:
        lowered = (name or "").lower()
        return any(browser in lowered for browser in self.browser_names)

    def list_browser_processes(self) -> List[ProcessInfo]:
        """
        Running browser processes.

        Raises:
            EnforcementIOError: If the process table cannot be read.
        """
        return [proc for proc in self._iter_processes() if self.is_browser(proc.name)]

    def kill_process(self, pid: int) -> bool:
        """
        Terminate a process, escalating to kill if it does not exit.

        Returns:
            True if the process was terminated, False if it was already
            gone or could not be killed.
        """
        try:
            proc = psutil.Process(pid)
            proc.terminate()
            try:
                proc.wait(timeout=self.kill_timeout)
            except psutil.TimeoutExpired:
                logger.debug(f"PID {pid} ignored terminate, killing")
                proc.kill()
            return True
        except psutil.NoSuchProcess:
            logger.debug(f"PID {pid} already exited")
            return False
        except psutil.AccessDenied:
            logger.warning(f"Access denied killing PID {pid}")
            return False
