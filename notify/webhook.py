"""
Webhook notifications.

Posts Discord-compatible ``{"content": message}`` payloads. Delivery is
best effort: failures are logged and reported as False, never raised, and
``send_async`` keeps network latency off the enforcement threads.
"""

import logging
import threading
from typing import Iterable, Optional

import requests

import config
from rules.formatting import day_name, format_clock, format_duration
from rules.models import BlockRule, ScheduleWindow, TimerWindow, WebsiteRule

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """Sends messages to a single webhook URL."""

    def __init__(self, url: str, timeout: float = config.WEBHOOK_TIMEOUT):
        self.url = url
        self.timeout = timeout

    def send(self, message: str) -> bool:
        """
        Post a message.

        Returns:
            True on a 2xx response, False otherwise.
        """
        try:
            response = requests.post(
                self.url,
                json={"content": message},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Webhook delivery failed: {e}")
            return False

        if not response.ok:
            logger.warning(f"Webhook failed with status: {response.status_code}")
            return False
        return True

    def send_async(self, message: str) -> threading.Thread:
        """Send on a background thread; returns the started thread."""
        thread = threading.Thread(target=self.send, args=(message,), daemon=True)
        thread.start()
        return thread


# ----------------------------------------------------------------------
# Message builders
# ----------------------------------------------------------------------

def killswitch_message() -> str:
    return "🚨 **KILLSWITCH ACTIVATED** 🚨\n\nAll blocking has been disabled for safety reasons."


def connection_test_message() -> str:
    return "✅ **Test Message**\n\nYour webhook is working correctly!"


def rule_toggled_message(rule: BlockRule, enabled: bool) -> str:
    """Describe a rule being enabled or disabled, with its timing details."""
    is_website = isinstance(rule, WebsiteRule)
    emoji = ("🌐" if is_website else "🔒") if enabled else "🔓"
    action = "Enabled" if enabled else "Disabled"
    label = "Website" if is_website else "App"
    target_label = "Domain" if is_website else "App"

    message = (
        f"{emoji} **{label} Block Rule {action}**\n\n"
        f"**{target_label}:** {rule.target}\n**Type:** {rule.kind}"
    )
    window = rule.window
    if isinstance(window, TimerWindow):
        message += f"\n**Duration:** {format_duration(window.duration_minutes)}"
    elif isinstance(window, ScheduleWindow):
        days = ", ".join(day_name(d, short=True) for d in sorted(window.days))
        message += (
            f"\n**Days:** {days}\n**Time:** "
            f"{format_clock(window.start_hour, window.start_minute)} - "
            f"{format_clock(window.end_hour, window.end_minute)}"
        )
    return message


def violation_message(target: str, domains: Optional[Iterable[str]] = None) -> str:
    """Describe a blocked app or browser being closed."""
    if domains:
        return f"⛔ **Browser closed:** {target}\n**Blocked websites:** {', '.join(domains)}"
    return f"⛔ **App closed:** {target}"
