"""
Inspector package - lists and terminates OS processes.
"""

from inspector.processes import ProcessInfo, ProcessInspector

__all__ = ["ProcessInfo", "ProcessInspector"]
