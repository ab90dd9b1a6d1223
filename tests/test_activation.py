"""
Tests for rules/activation.py - when permanent, timer and schedule rules block.
"""

import sys
import unittest
from datetime import datetime, timedelta
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rules.activation import active_rules, is_rule_active, timer_end, weekday_index
from rules.models import AppRule, PermanentWindow, ScheduleWindow, TimerWindow, WebsiteRule

# 2026-10-21 is a Wednesday, 2026-10-24 a Saturday, 2026-10-25 a Sunday
WEDNESDAY = datetime(2026, 10, 21)
SATURDAY = datetime(2026, 10, 24)
SUNDAY = datetime(2026, 10, 25)


def schedule_rule(days, start, end, enabled=True):
    return AppRule(
        window=ScheduleWindow(
            days=frozenset(days),
            start_hour=start[0],
            start_minute=start[1],
            end_hour=end[0],
            end_minute=end[1],
        ),
        app_name="Slack",
        enabled=enabled,
    )


class TestWeekdayIndex(unittest.TestCase):
    """Weekday numbering with Sunday as 0."""

    def test_sunday_is_zero(self):
        """Sunday maps to 0."""
        self.assertEqual(weekday_index(SUNDAY), 0)

    def test_saturday_is_six(self):
        """Saturday maps to 6."""
        self.assertEqual(weekday_index(SATURDAY), 6)

    def test_wednesday_is_three(self):
        """Midweek days count up from Sunday."""
        self.assertEqual(weekday_index(WEDNESDAY), 3)


class TestPermanentRules(unittest.TestCase):
    """Permanent rules follow only their enabled flag."""

    def test_enabled_permanent_rule_is_active(self):
        """An enabled permanent rule is always active."""
        rule = WebsiteRule(window=PermanentWindow(), domain="reddit.com")
        self.assertTrue(is_rule_active(rule, WEDNESDAY))

    def test_disabled_rule_is_never_active(self):
        """A disabled rule is never active."""
        rule = WebsiteRule(window=PermanentWindow(), domain="reddit.com", enabled=False)
        self.assertFalse(is_rule_active(rule, WEDNESDAY))


class TestTimerRules(unittest.TestCase):
    """Timer windows include both the start and end instants."""

    def setUp(self):
        self.start = WEDNESDAY.replace(hour=10)
        self.rule = AppRule(
            window=TimerWindow(start_time=self.start, duration_minutes=30),
            app_name="Steam",
        )
        self.end = self.start + timedelta(minutes=30)

    def test_timer_end(self):
        """End is start plus the duration."""
        self.assertEqual(timer_end(self.rule.window), self.end)

    def test_active_at_start(self):
        """Active at the exact start instant."""
        self.assertTrue(is_rule_active(self.rule, self.start))

    def test_inactive_just_before_start(self):
        """Not active before the timer starts."""
        self.assertFalse(is_rule_active(self.rule, self.start - timedelta(milliseconds=1)))

    def test_active_at_exact_end(self):
        """Both bounds are inclusive."""
        self.assertTrue(is_rule_active(self.rule, self.end))

    def test_inactive_just_after_end(self):
        """Not active once the end instant has passed."""
        self.assertFalse(is_rule_active(self.rule, self.end + timedelta(milliseconds=1)))

    def test_disabled_timer_inactive_mid_window(self):
        """Disabling overrides an open timer window."""
        rule = AppRule(window=self.rule.window, app_name="Steam", enabled=False)
        self.assertFalse(is_rule_active(rule, self.start + timedelta(minutes=5)))


class TestScheduleRules(unittest.TestCase):
    """Minute-granular weekly schedules."""

    def setUp(self):
        # Monday-Friday, 09:00-17:00
        self.rule = schedule_rule([1, 2, 3, 4, 5], (9, 0), (17, 0))

    def test_active_at_start_minute(self):
        """Active from the start minute."""
        self.assertTrue(is_rule_active(self.rule, WEDNESDAY.replace(hour=9)))

    def test_inactive_minute_before_start(self):
        """Not active the minute before the start."""
        self.assertFalse(is_rule_active(self.rule, WEDNESDAY.replace(hour=8, minute=59)))

    def test_active_at_end_minute(self):
        """Active during the end minute."""
        self.assertTrue(is_rule_active(self.rule, WEDNESDAY.replace(hour=17)))

    def test_minute_granularity_covers_whole_end_minute(self):
        """Seconds within the end minute still count."""
        self.assertTrue(is_rule_active(self.rule, WEDNESDAY.replace(hour=17, second=59)))

    def test_inactive_after_end_minute(self):
        """Not active the minute after the end."""
        self.assertFalse(is_rule_active(self.rule, WEDNESDAY.replace(hour=17, minute=1)))

    def test_inactive_on_unselected_day(self):
        """Days outside the set never block."""
        self.assertFalse(is_rule_active(self.rule, SATURDAY.replace(hour=10)))

    def test_empty_days_never_active(self):
        """A schedule with no days never blocks."""
        rule = schedule_rule([], (0, 0), (23, 59))
        self.assertFalse(is_rule_active(rule, WEDNESDAY.replace(hour=12)))

    def test_window_ending_before_start_does_not_wrap(self):
        """End before start never wraps past midnight."""
        rule = schedule_rule(range(7), (22, 0), (6, 0))
        self.assertTrue(rule.window.ends_before_start)
        for hour in (23, 3, 12):
            self.assertFalse(is_rule_active(rule, WEDNESDAY.replace(hour=hour)))

    def test_disabled_schedule_inactive(self):
        """Disabling overrides a matching schedule."""
        rule = schedule_rule([3], (9, 0), (17, 0), enabled=False)
        self.assertFalse(is_rule_active(rule, WEDNESDAY.replace(hour=12)))


class TestActiveRules(unittest.TestCase):
    """Filtering a rule list down to active rules."""

    def test_filters_inactive_rules(self):
        """Only active rules are returned, in order."""
        on = AppRule(window=PermanentWindow(), app_name="Discord")
        off = AppRule(window=PermanentWindow(), app_name="Steam", enabled=False)
        weekend = schedule_rule([0, 6], (0, 0), (23, 59))
        self.assertEqual(active_rules([on, off, weekend], WEDNESDAY.replace(hour=12)), [on])


if __name__ == "__main__":
    unittest.main()
