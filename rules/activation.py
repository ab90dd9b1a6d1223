"""
Rule activation.

``is_rule_active`` decides whether a rule blocks at a given instant. It is
pure arithmetic over the rule and the supplied time, so the enforcement
loop can call it on every tick.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, TypeVar

from rules.models import BlockRule, PermanentWindow, ScheduleWindow, TimerWindow

RuleT = TypeVar("RuleT", bound=BlockRule)


def weekday_index(moment: datetime) -> int:
    """Weekday with Sunday=0 .. Saturday=6."""
    return (moment.weekday() + 1) % 7


def timer_end(window: TimerWindow) -> datetime:
    """Instant at which a timer window stops blocking."""
    return window.start_time + timedelta(minutes=window.duration_minutes)


def is_rule_active(rule: BlockRule, now: Optional[datetime] = None) -> bool:
    """
    Check whether a rule is blocking at the given instant.

    Args:
        rule: App or website rule.
        now: Instant to evaluate at. Defaults to datetime.now().

    Returns:
        False for disabled rules. Otherwise:
        - permanent: True
        - timer: True within [start_time, start_time + duration], both inclusive
        - schedule: True when today's weekday is selected and the clock time
          (to the minute) is within [start, end], both inclusive. Windows
          ending before they start never match.
    """
    if not rule.enabled:
        return False

    if now is None:
        now = datetime.now()

    window = rule.window
    if isinstance(window, PermanentWindow):
        return True

    if isinstance(window, TimerWindow):
        return window.start_time <= now <= timer_end(window)

    if isinstance(window, ScheduleWindow):
        if weekday_index(now) not in window.days:
            return False
        current_minutes = now.hour * 60 + now.minute
        return window.start_minutes <= current_minutes <= window.end_minutes

    raise TypeError(f"Unhandled rule window: {window!r}")


def active_rules(rules: Iterable[RuleT], now: Optional[datetime] = None) -> List[RuleT]:
    """Filter rules down to those active at the given instant."""
    if now is None:
        now = datetime.now()
    return [rule for rule in rules if is_rule_active(rule, now)]
