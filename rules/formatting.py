"""Human-readable descriptions of rules for the CLI and notifications."""

from datetime import datetime
from typing import Optional

from rules.activation import timer_end
from rules.models import BlockRule, PermanentWindow, ScheduleWindow, TimerWindow

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def day_name(day: int, short: bool = False) -> str:
    """Name of a weekday index (Sunday=0)."""
    name = DAY_NAMES[day]
    return name[:3] if short else name


def format_duration(minutes: int) -> str:
    """Format minutes as "45m", "2h" or "1h 30m"."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def format_clock(hour: int, minute: int) -> str:
    """Format a clock time as "9:05 AM"."""
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display_hour}:{minute:02d} {period}"


def format_time_range(window: ScheduleWindow) -> str:
    """
    Format a schedule window's clock range.

    Windows that end before they start are labelled, since they never
    block (they do not wrap past midnight).
    """
    text = (
        f"{format_clock(window.start_hour, window.start_minute)} - "
        f"{format_clock(window.end_hour, window.end_minute)}"
    )
    if window.ends_before_start:
        text += " (never active: ends before it starts)"
    return text


def describe_rule(rule: BlockRule, now: Optional[datetime] = None) -> str:
    """
    One-line description of when a rule blocks.

    Examples: "Blocked permanently", "25m remaining",
    "Timer expired (30m)", "Mon, Tue • 9:00 AM - 5:00 PM".
    """
    if now is None:
        now = datetime.now()
    window = rule.window

    if isinstance(window, PermanentWindow):
        return "Blocked permanently"

    if isinstance(window, TimerWindow):
        if now < window.start_time:
            return f"Starts at {window.start_time:%H:%M} ({format_duration(window.duration_minutes)})"
        remaining = (timer_end(window) - now).total_seconds()
        # The end instant itself still blocks
        if remaining >= 60:
            return f"{format_duration(int(remaining // 60))} remaining"
        if remaining >= 0:
            return "<1m remaining"
        return f"Timer expired ({format_duration(window.duration_minutes)})"

    if isinstance(window, ScheduleWindow):
        if not window.days:
            return "No days selected"
        days = ", ".join(day_name(d, short=True) for d in sorted(window.days))
        return f"{days} • {format_time_range(window)}"

    return ""
