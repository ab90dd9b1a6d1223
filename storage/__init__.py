"""
Storage package - key-value persistence for rules, settings and events.
"""

from storage.json_store import JsonStore

__all__ = ["JsonStore"]
