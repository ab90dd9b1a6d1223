"""
Tracking package - the persisted audit log of blocking events.
"""
