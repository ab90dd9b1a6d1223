"""
Tests for the rule model, process matching and the persisted RuleBook.
"""

import sys
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from core.errors import PersistenceError, ValidationError
from rules.manager import RuleBook
from rules.matching import executable_stem, find_matching_rule, rule_matches_process
from rules.models import (
    AppRule,
    PermanentWindow,
    ScheduleWindow,
    TimerWindow,
    WebsiteRule,
    build_window,
    normalize_domain,
)
from storage.json_store import JsonStore


class TestNormalizeDomain(unittest.TestCase):
    """Domain normalisation."""

    def test_strips_scheme_www_and_path(self):
        """Scheme, www and path are removed."""
        self.assertEqual(normalize_domain("https://www.YouTube.com/watch?v=1"), "youtube.com")

    def test_strips_trailing_slash(self):
        """Trailing slashes are removed."""
        self.assertEqual(normalize_domain("reddit.com/"), "reddit.com")

    def test_http_scheme(self):
        """Plain http URLs are handled."""
        self.assertEqual(normalize_domain("HTTP://Example.org"), "example.org")

    def test_keeps_subdomains_other_than_www(self):
        """Other subdomains are kept."""
        self.assertEqual(normalize_domain("old.reddit.com"), "old.reddit.com")


class TestBuildWindow(unittest.TestCase):
    """Building activation windows from parameters."""

    def test_permanent(self):
        """Permanent windows take no parameters."""
        self.assertIsInstance(build_window(config.RULE_PERMANENT), PermanentWindow)

    def test_timer(self):
        """Timer windows."""
        window = build_window(config.RULE_TIMER, start_time=datetime(2026, 10, 21, 9), duration_minutes=45)
        self.assertIsInstance(window, TimerWindow)
        self.assertEqual(window.duration_minutes, 45)

    def test_timer_accepts_iso_start(self):
        """Timer starts may be ISO strings."""
        window = build_window(config.RULE_TIMER, start_time="2026-10-21T09:00:00", duration_minutes=5)
        self.assertEqual(window.start_time, datetime(2026, 10, 21, 9))

    def test_unknown_kind(self):
        """Unknown kinds are rejected."""
        with self.assertRaises(ValidationError):
            build_window("forever")

    def test_missing_parameter(self):
        """Missing parameters are rejected."""
        with self.assertRaises(ValidationError):
            build_window(config.RULE_TIMER, duration_minutes=10)

    def test_unexpected_parameter(self):
        """Extra parameters are rejected."""
        with self.assertRaises(ValidationError):
            build_window(config.RULE_PERMANENT, duration_minutes=10)

    def test_zero_duration_rejected(self):
        """Timers need a positive duration."""
        with self.assertRaises(ValidationError):
            build_window(config.RULE_TIMER, start_time=datetime(2026, 10, 21), duration_minutes=0)

    def test_out_of_range_schedule_values(self):
        """Days, hours and minutes are range-checked."""
        base = dict(days=[1], start_hour=9, start_minute=0, end_hour=17, end_minute=0)
        for field, value in (("start_hour", 24), ("end_minute", 60), ("days", [7])):
            with self.subTest(field=field):
                with self.assertRaises(ValidationError):
                    build_window(config.RULE_SCHEDULE, **dict(base, **{field: value}))

    def test_schedule_days_become_frozenset(self):
        """Schedule days are stored as a frozenset."""
        window = build_window(
            config.RULE_SCHEDULE, days=[1, 1, 2], start_hour=9, start_minute=0, end_hour=17, end_minute=0
        )
        self.assertEqual(window.days, frozenset({1, 2}))


class TestRuleModel(unittest.TestCase):
    """Rule construction and updates."""

    def test_app_rule_needs_name(self):
        """App rules need a name."""
        with self.assertRaises(ValidationError):
            AppRule(window=PermanentWindow(), app_name="   ")

    def test_website_rule_normalises_domain(self):
        """Website rules normalise their domain."""
        rule = WebsiteRule(window=PermanentWindow(), domain="https://www.x.com/home")
        self.assertEqual(rule.domain, "x.com")
        self.assertEqual(rule.target, "x.com")

    def test_website_rule_needs_domain(self):
        """Website rules need a domain."""
        with self.assertRaises(ValidationError):
            WebsiteRule(window=PermanentWindow(), domain="https://")

    def test_rules_get_unique_ids(self):
        """Each rule gets its own id."""
        a = AppRule(window=PermanentWindow(), app_name="A")
        b = AppRule(window=PermanentWindow(), app_name="A")
        self.assertNotEqual(a.id, b.id)

    def test_to_dict_flattens_window(self):
        """Serialised rules inline their window."""
        rule = AppRule(window=TimerWindow(datetime(2026, 10, 21, 9), 30), app_name="Steam")
        data = rule.to_dict()
        self.assertEqual(data["kind"], config.RULE_TIMER)
        self.assertEqual(data["duration_minutes"], 30)
        self.assertEqual(data["app_name"], "Steam")

    def test_with_updates_returns_new_rule(self):
        """Updates return a new rule."""
        rule = AppRule(window=TimerWindow(datetime(2026, 10, 21, 9), 30), app_name="Steam")
        updated = rule.with_updates(duration_minutes=60)
        self.assertEqual(updated.window.duration_minutes, 60)
        self.assertEqual(updated.id, rule.id)
        self.assertEqual(rule.window.duration_minutes, 30)

    def test_with_updates_rejects_immutable_fields(self):
        """Ids and kinds cannot change."""
        rule = AppRule(window=PermanentWindow(), app_name="Steam")
        for field in ("id", "kind", "created_at"):
            with self.subTest(field=field):
                with self.assertRaises(ValidationError):
                    rule.with_updates(**{field: "x"})

    def test_with_updates_rejects_fields_of_other_kinds(self):
        """Fields of other window kinds are rejected."""
        rule = AppRule(window=PermanentWindow(), app_name="Steam")
        with self.assertRaises(ValidationError):
            rule.with_updates(duration_minutes=10)

    def test_with_updates_revalidates(self):
        """Updated rules are validated again."""
        rule = AppRule(
            window=ScheduleWindow(frozenset({1}), 9, 0, 17, 0),
            app_name="Steam",
        )
        with self.assertRaises(ValidationError):
            rule.with_updates(end_hour=25)


class TestProcessMatching(unittest.TestCase):
    """Matching processes against app rules."""

    def test_exact_path_match_ignores_case_and_separators(self):
        """Paths compare without case or separator differences."""
        rule = AppRule(window=PermanentWindow(), app_name="Steam", app_path="C:\\Games\\Steam\\steam.exe")
        self.assertTrue(rule_matches_process(rule, "something", "c:/games/steam/STEAM.EXE"))

    def test_filename_match_in_other_directory(self):
        """The same file name in another folder matches."""
        rule = AppRule(window=PermanentWindow(), app_name="Steam", app_path="C:\\Games\\Steam\\steam.exe")
        self.assertTrue(rule_matches_process(rule, "", "D:\\Other\\Steam.exe"))

    def test_name_match_strips_extension(self):
        """Names match without .exe."""
        rule = AppRule(window=PermanentWindow(), app_name="discord")
        self.assertTrue(rule_matches_process(rule, "Discord.exe", ""))

    def test_app_bundle_extension(self):
        """Names match without .app."""
        self.assertEqual(executable_stem("/Applications/Slack.app"), "slack")

    def test_no_match(self):
        """Unrelated processes do not match."""
        rule = AppRule(window=PermanentWindow(), app_name="Discord", app_path="/usr/bin/discord")
        self.assertFalse(rule_matches_process(rule, "firefox", "/usr/bin/firefox"))

    def test_partial_name_does_not_match(self):
        """Name fragments do not match."""
        rule = AppRule(window=PermanentWindow(), app_name="code")
        self.assertFalse(rule_matches_process(rule, "vscode", ""))

    def test_first_matching_rule_wins(self):
        """The first matching rule is returned."""
        by_name = AppRule(window=PermanentWindow(), app_name="steam")
        by_path = AppRule(window=PermanentWindow(), app_name="Steam", app_path="/opt/steam/steam")
        self.assertIs(find_matching_rule([by_name, by_path], "steam", "/opt/steam/steam"), by_name)
        self.assertIsNone(find_matching_rule([by_name], "firefox", ""))


class TestRuleBook(unittest.TestCase):
    """Persisted rule collections."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = JsonStore(Path(self._tmp.name))
        self.book = RuleBook(self.store)

    def test_add_and_get(self):
        """Added rules can be fetched by id."""
        rule = self.book.add(AppRule(window=PermanentWindow(), app_name="Steam"))
        self.assertEqual(self.book.app_rules(), (rule,))
        self.assertEqual(self.book.website_rules(), ())
        self.assertEqual(self.book.get(rule.id), rule)

    def test_rules_survive_reload(self):
        """Rules persist across instances."""
        app = self.book.add(AppRule(window=PermanentWindow(), app_name="Steam", app_path="/opt/steam"))
        site = self.book.add(
            WebsiteRule(window=ScheduleWindow(frozenset({1, 5}), 9, 0, 17, 30), domain="youtube.com")
        )
        reloaded = RuleBook(JsonStore(Path(self._tmp.name)))
        self.assertEqual(reloaded.app_rules(), (app,))
        self.assertEqual(reloaded.website_rules(), (site,))

    def test_duplicate_id_rejected(self):
        """Ids must be unique."""
        rule = self.book.add(AppRule(window=PermanentWindow(), app_name="Steam"))
        with self.assertRaises(ValidationError):
            self.book.add(rule)

    def test_update_and_remove(self):
        """Rules can be updated and removed."""
        rule = self.book.add(WebsiteRule(window=PermanentWindow(), domain="reddit.com"))
        updated = self.book.update(rule.id, enabled=False)
        self.assertFalse(updated.enabled)
        self.assertFalse(self.book.get(rule.id).enabled)
        self.book.remove(rule.id)
        self.assertIsNone(self.book.get(rule.id))

    def test_unknown_id(self):
        """Unknown ids raise KeyError."""
        with self.assertRaises(KeyError):
            self.book.update("missing", enabled=False)
        with self.assertRaises(KeyError):
            self.book.remove("missing")

    def test_failed_save_leaves_rules_unchanged(self):
        """A failed save keeps the old rules."""
        rule = self.book.add(AppRule(window=PermanentWindow(), app_name="Steam"))
        with patch.object(self.store, "set", side_effect=PersistenceError("disk full")):
            with self.assertRaises(PersistenceError):
                self.book.update(rule.id, enabled=False)
            with self.assertRaises(PersistenceError):
                self.book.add(AppRule(window=PermanentWindow(), app_name="Discord"))
        self.assertEqual(self.book.app_rules(), (rule,))

    def test_invalid_stored_entries_are_skipped(self):
        """Malformed stored rules are skipped."""
        good = AppRule(window=PermanentWindow(), app_name="Steam").to_dict()
        self.store.set(config.STORAGE_BLOCK_RULES, [good, {"kind": "permanent"}, "junk"])
        rules = self.book.app_rules()
        self.assertEqual(len(rules), 1)
        self.assertEqual(rules[0].app_name, "Steam")


if __name__ == "__main__":
    unittest.main()
