"""
Notify package - optional webhook notifications.
"""

from notify.webhook import WebhookNotifier

__all__ = ["WebhookNotifier"]
