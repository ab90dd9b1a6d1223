"""
EnforcementEngine - core blocking engine for Holdfast.

Owns the rule book, settings, event log, enforcement state and the PIN
gate, and runs the two enforcement loops:

    app loop      every APP_CHECK_INTERVAL seconds, kills processes matching
                  an active app rule (no cooldown)
    website loop  every WEBSITE_CHECK_INTERVAL seconds, closes running
                  browsers while any website rule is active, after a grace
                  period and subject to a per-browser cooldown

This module has ZERO UI dependencies. The CLI (or any future UI) calls
engine methods and receives updates via callbacks.

Callbacks:
    on_status_change(armed: bool, website_armed: bool)
    on_violation(record: EventRecord)
    on_error(error_type: str, message: str)
"""

import os
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import config
from core.auth import ActionDecision, AuthorizationGate, validate_pin, hash_pin
from core.errors import PersistenceError, ValidationError
from core.scheduler import PeriodicTask
from core.settings import AppSettings, SettingsManager
from core.state import EngineState
from inspector.processes import ProcessInfo, ProcessInspector
from notify.webhook import (
    WebhookNotifier,
    connection_test_message,
    killswitch_message,
    rule_toggled_message,
    violation_message,
)
from rules.activation import active_rules, is_rule_active
from rules.categories import WEBSITE_CATEGORIES, get_domains_from_categories
from rules.formatting import describe_rule
from rules.manager import RuleBook
from rules.matching import find_matching_rule
from rules.models import AppRule, BlockRule, WebsiteRule, build_window
from storage.json_store import JsonStore
from tracking.events import EventRecord, EventRecorder

logger = logging.getLogger(__name__)

# Settings flag controlling each notification kind
_NOTIFICATION_FLAGS = {
    config.EVENT_BLOCK: "send_block_notifications",
    config.EVENT_UNBLOCK: "send_unblock_notifications",
    config.EVENT_KILLSWITCH: "send_killswitch_notifications",
    config.EVENT_VIOLATION: "send_violation_notifications",
}


class EnforcementEngine:
    """
    Core enforcement engine.

    Handles:
    - Rule management (add, edit, enable/disable, remove)
    - Armed / website-armed master switches, persisted across restarts
    - PIN-gated destructive actions and the killswitch
    - App and website enforcement loops (background threads)
    - Event log and optional webhook notifications

    Ticks can be driven directly via run_app_tick() / run_website_tick();
    start() merely schedules them on background threads.
    """

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def __init__(
        self,
        store: Optional[JsonStore] = None,
        inspector: Optional[ProcessInspector] = None,
        clock: Callable[[], datetime] = datetime.now,
        notifier_factory: Callable[[str], WebhookNotifier] = WebhookNotifier,
        app_interval: float = config.APP_CHECK_INTERVAL,
        website_interval: float = config.WEBSITE_CHECK_INTERVAL,
        browser_cooldown: float = config.BROWSER_KILL_COOLDOWN,
        website_grace: float = config.WEBSITE_GRACE_PERIOD,
    ) -> None:
        """
        Initialise the engine from persisted settings.

        Args:
            store: Persistence (defaults to a JsonStore in config.USER_DATA_DIR).
            inspector: Process lister/killer (defaults to the psutil inspector).
            clock: Source of the current time.
            notifier_factory: Builds a notifier for a webhook URL.
            app_interval: Seconds between app enforcement ticks.
            website_interval: Seconds between website enforcement ticks.
            browser_cooldown: Seconds before the same browser may be killed again.
            website_grace: Seconds after website rules turn active before the first kill.
        """
        self.store: JsonStore = store or JsonStore(config.USER_DATA_DIR)
        self.inspector: ProcessInspector = inspector or ProcessInspector()
        self._clock = clock
        self._notifier_factory = notifier_factory
        self.website_grace = timedelta(seconds=website_grace)

        self.settings_manager = SettingsManager(self.store)
        self.rules = RuleBook(self.store)
        self.events = EventRecorder(self.store)

        settings = self.settings_manager.load()
        self.state = EngineState(
            cooldown_window=timedelta(seconds=browser_cooldown),
            armed=settings.blocking_enabled,
            website_armed=settings.website_blocking_enabled,
        )
        # Last persisted armed flags seen, to pick up changes made elsewhere
        self._persisted_flags: Tuple[bool, bool] = (
            settings.blocking_enabled,
            settings.website_blocking_enabled,
        )

        self.gate = AuthorizationGate(
            self.state,
            self.events,
            pin_hash_provider=lambda: self.settings_manager.load().pin_hash,
            clock=clock,
        )
        self.gate.on_override = self._after_killswitch

        self._app_task = PeriodicTask("app-enforcement", app_interval, self.run_app_tick)
        self._website_task = PeriodicTask("website-enforcement", website_interval, self.run_website_tick)

        # Display snapshots, replaced wholesale at the end of each tick
        self._blocked_apps: Tuple[Dict[str, Any], ...] = ()
        self._blocked_browsers: Tuple[Dict[str, Any], ...] = ()
        self.last_app_tick: Optional[datetime] = None
        self.last_website_tick: Optional[datetime] = None

        # ---- Callbacks (set by the CLI / tray app) ----
        self.on_status_change: Optional[Callable[[bool, bool], None]] = None
        self.on_violation: Optional[Callable[[EventRecord], None]] = None
        self.on_error: Optional[Callable[[str, str], None]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start both enforcement loops on background threads."""
        self._app_task.start()
        self._website_task.start()
        logger.info(
            f"Enforcement engine started (armed={self.state.armed}, "
            f"website_armed={self.state.website_armed})"
        )

    def stop(self) -> None:
        """Stop both loops; an in-flight tick finishes its current batch."""
        self._app_task.stop()
        self._website_task.stop()
        logger.info("Enforcement engine stopped")

    @property
    def is_running(self) -> bool:
        return self._app_task.is_running or self._website_task.is_running

    def cleanup(self) -> None:
        """Clean up resources. Call before app quit."""
        self.stop()
        self.gate.invalidate()
        logger.info("Engine cleanup complete")

    # ------------------------------------------------------------------
    # Status (wait-free snapshots for display)
    # ------------------------------------------------------------------

    @property
    def settings(self) -> AppSettings:
        return self.settings_manager.load()

    def get_status(self) -> Dict[str, Any]:
        """
        Get current engine status.

        Returns:
            dict with keys: armed, website_armed, authenticated,
            session_expires_at, is_running, app_rules, website_rules,
            active_app_rules, active_website_rules, website_grace_remaining,
            cooldown_targets, last_app_tick, last_website_tick, setup_complete.
        """
        now = self._clock()
        app_rules = self.rules.app_rules()
        website_rules = self.rules.website_rules()
        session = self.gate.session
        state = self.state.snapshot()

        grace_remaining = 0.0
        since = state["website_active_since"]
        if since is not None:
            grace_remaining = max(0.0, (self.website_grace - (now - since)).total_seconds())

        return {
            "armed": state["armed"],
            "website_armed": state["website_armed"],
            "authenticated": session is not None,
            "session_expires_at": session.expires_at if session else None,
            "is_running": self.is_running,
            "app_rules": len(app_rules),
            "website_rules": len(website_rules),
            "active_app_rules": len(active_rules(app_rules, now)),
            "active_website_rules": len(active_rules(website_rules, now)),
            "website_grace_remaining": grace_remaining,
            "cooldown_targets": state["cooldown_targets"],
            "last_app_tick": self.last_app_tick,
            "last_website_tick": self.last_website_tick,
            "setup_complete": self.settings.is_setup_complete,
        }

    def get_blocking_status(self) -> Dict[str, Any]:
        """
        What the most recent ticks found and blocked.

        Returns:
            {"blocked_apps": [{name, path, pid, rule}],
             "blocked_browsers": [{name, path, pid, domains}],
             "total_blocked": int}
        """
        apps = list(self._blocked_apps)
        browsers = list(self._blocked_browsers)
        return {
            "blocked_apps": apps,
            "blocked_browsers": browsers,
            "total_blocked": len(apps) + len(browsers),
        }

    def get_rules(self) -> List[Dict[str, Any]]:
        """All rules as display dicts (with "type", "active" and "description")."""
        now = self._clock()
        rows = []
        for rule in self.rules.all_rules():
            row = rule.to_dict()
            row["type"] = "website" if isinstance(rule, WebsiteRule) else "app"
            row["target"] = rule.target
            row["active"] = is_rule_active(rule, now)
            row["description"] = describe_rule(rule, now)
            rows.append(row)
        return rows

    # ------------------------------------------------------------------
    # Armed switches
    # ------------------------------------------------------------------

    def arm(self) -> None:
        """
        Turn protection on. Never needs a PIN.

        Raises:
            PersistenceError: If the setting cannot be saved (not armed).
        """
        self._save_flags(blocking_enabled=True)
        if self.state.arm():
            self._notify_status_change()
        self._app_task.wake()
        self._website_task.wake()

    def disarm(self) -> None:
        """
        Turn protection off. Needs a valid PIN session.

        Raises:
            AuthorizationFailure: No valid session.
            PersistenceError: If the setting cannot be saved (still armed).
        """
        self.gate.require_session("disabling protection")
        self._save_flags(blocking_enabled=False)
        if self.state.disarm():
            self._notify_status_change()

    def set_website_armed(self, enabled: bool) -> None:
        """
        Toggle website enforcement. Turning it off needs a PIN session.

        Raises:
            AuthorizationFailure: Disabling without a valid session.
            PersistenceError: If the setting cannot be saved.
        """
        if not enabled and self.state.website_armed:
            self.gate.require_session("disabling website blocking")
        self._save_flags(website_blocking_enabled=enabled)
        if self.state.set_website_armed(enabled):
            self._notify_status_change()
        if enabled:
            self._website_task.wake()

    def emergency_override(self) -> None:
        """Killswitch: disable everything now, no PIN required."""
        self.gate.emergency_override()

    def _after_killswitch(self) -> None:
        """Persist the killswitch, notify, and update listeners."""
        try:
            self._save_flags(blocking_enabled=False, website_blocking_enabled=False)
        except PersistenceError as e:
            logger.error(f"Killswitch could not be saved; protection is off until restart: {e}")
        self._send_notification(config.EVENT_KILLSWITCH, killswitch_message())
        self._notify_status_change()

    def _save_flags(self, **flags: bool) -> None:
        settings = self.settings_manager.update(**flags)
        with self.state.lock:
            self._persisted_flags = (settings.blocking_enabled, settings.website_blocking_enabled)

    def _sync_armed_flags(self) -> None:
        """
        Apply armed flags changed by another process (e.g. a CLI disarm or
        killswitch while the daemon runs). Only changes since the last sync
        are applied, so a failed local save is never undone.
        """
        try:
            settings = self.settings_manager.load()
        except PersistenceError as e:
            logger.warning(f"Could not read settings: {e}")
            return

        flags = (settings.blocking_enabled, settings.website_blocking_enabled)
        with self.state.lock:
            if flags == self._persisted_flags:
                return
            self._persisted_flags = flags

        armed, website_armed = flags
        changed = False
        if armed != self.state.armed:
            changed |= self.state.arm() if armed else self.state.disarm()
        if website_armed != self.state.website_armed:
            changed |= self.state.set_website_armed(website_armed)
        if changed:
            logger.info("Picked up armed state change from storage")
            self._notify_status_change()

    # ------------------------------------------------------------------
    # PIN
    # ------------------------------------------------------------------

    def begin_action(self, requires_auth: bool) -> ActionDecision:
        return self.gate.begin_action(requires_auth)

    def verify_pin(self, pin: str) -> bool:
        """Verify the PIN and open a session. Wrong PINs return False."""
        return self.gate.verify(pin)

    def set_pin(self, new_pin: str) -> None:
        """
        Set or change the PIN.

        Setting the first PIN needs no session; changing an existing PIN does.

        Raises:
            ValidationError: PIN too short or not numeric.
            AuthorizationFailure: Changing the PIN without a valid session.
            PersistenceError: If the hash cannot be saved.
        """
        pin = validate_pin(new_pin)
        if self.settings.pin_hash:
            self.gate.require_session("changing the PIN")
        self.settings_manager.update(pin_hash=hash_pin(pin), is_setup_complete=True)
        logger.info("PIN updated")

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _build_window(self, kind: str, params: Dict[str, Any]):
        if kind == config.RULE_TIMER:
            params.setdefault("start_time", self._clock())
        return build_window(kind, **params)

    def _requires_auth(self, rule: BlockRule) -> bool:
        return rule.enabled and self.state.armed

    def _get_rule(self, rule_id: str) -> BlockRule:
        rule = self.rules.get(rule_id)
        if rule is None:
            raise KeyError(f"No rule with id {rule_id}")
        return rule

    def add_app_rule(
        self,
        app_name: str,
        app_path: str = "",
        kind: str = config.RULE_PERMANENT,
        enabled: bool = True,
        **params: Any,
    ) -> AppRule:
        """
        Create an app rule. Adding protection never needs a PIN.

        Args:
            app_name: Application / process name.
            app_path: Executable path (optional, improves matching).
            kind: "permanent", "timer" or "schedule".
            enabled: Initial toggle.
            **params: Kind parameters (duration_minutes [, start_time] for
                timers; days, start_hour, start_minute, end_hour, end_minute
                for schedules).

        Raises:
            ValidationError: Invalid fields.
            PersistenceError: If saving fails.
        """
        window = self._build_window(kind, params)
        rule = AppRule(
            window=window,
            app_name=app_name,
            app_path=app_path,
            enabled=enabled,
            created_at=self._clock(),
        )
        self.rules.add(rule)
        if enabled:
            self._record_toggle(rule, True, f"Added app block for {rule.app_name}")
        return rule

    def add_website_rule(
        self,
        domain: str,
        kind: str = config.RULE_PERMANENT,
        enabled: bool = True,
        **params: Any,
    ) -> WebsiteRule:
        """
        Create a website rule. The domain is normalised ("https://www.x.com/a" -> "x.com").

        Raises:
            ValidationError: Invalid fields.
            PersistenceError: If saving fails.
        """
        window = self._build_window(kind, params)
        rule = WebsiteRule(window=window, domain=domain, enabled=enabled, created_at=self._clock())
        self.rules.add(rule)
        if enabled:
            self._record_toggle(rule, True, f"Added website block for {rule.domain}")
        return rule

    def add_website_category(
        self,
        category_id: str,
        kind: str = config.RULE_PERMANENT,
        **params: Any,
    ) -> List[WebsiteRule]:
        """
        Add one website rule per domain of a preset category.

        Domains that already have a rule are skipped.

        Raises:
            ValidationError: Unknown category or invalid parameters.
        """
        if category_id not in WEBSITE_CATEGORIES:
            raise ValidationError(f"Unknown website category: {category_id}")
        # Validate once before writing anything
        self._build_window(kind, dict(params))

        existing = {rule.domain for rule in self.rules.website_rules()}
        added = []
        for domain in get_domains_from_categories([category_id]):
            if domain in existing:
                continue
            added.append(self.add_website_rule(domain, kind=kind, **dict(params)))
        logger.info(f"Added {len(added)} rule(s) from category {category_id}")
        return added

    def update_rule(self, rule_id: str, **updates: Any) -> BlockRule:
        """
        Edit a rule. Editing an enabled rule while armed needs a PIN session.

        Raises:
            KeyError: Unknown rule.
            AuthorizationFailure: Session required but missing.
            ValidationError: Invalid or immutable fields (nothing applied).
            PersistenceError: If saving fails (nothing applied).
        """
        rule = self._get_rule(rule_id)
        if self._requires_auth(rule):
            self.gate.require_session(f"editing the rule for {rule.target}")
        updated = self.rules.update(rule_id, **updates)
        if updated.enabled != rule.enabled:
            verb = "Enabled" if updated.enabled else "Disabled"
            label = "website" if isinstance(updated, WebsiteRule) else "app"
            self._record_toggle(updated, updated.enabled, f"{verb} {label} block for {updated.target}")
        return updated

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> BlockRule:
        """Enable or disable a rule (disabling an enabled rule while armed needs a PIN)."""
        return self.update_rule(rule_id, enabled=enabled)

    def remove_rule(self, rule_id: str) -> BlockRule:
        """
        Delete a rule. Deleting an enabled rule while armed needs a PIN session.

        Raises:
            KeyError: Unknown rule.
            AuthorizationFailure: Session required but missing.
            PersistenceError: If saving fails (rule kept).
        """
        rule = self._get_rule(rule_id)
        if self._requires_auth(rule):
            self.gate.require_session(f"removing the rule for {rule.target}")
        removed = self.rules.remove(rule_id)
        if removed.enabled:
            self._record_toggle(removed, False, f"Removed block for {removed.target}")
        return removed

    def _record_toggle(self, rule: BlockRule, enabled: bool, message: str) -> None:
        kind = config.EVENT_BLOCK if enabled else config.EVENT_UNBLOCK
        self.events.append(kind, rule.target, message, timestamp=self._clock())
        self._send_notification(kind, rule_toggled_message(rule, enabled))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def list_events(self) -> List[EventRecord]:
        """Event log, newest first."""
        return self.events.list()

    def clear_events(self) -> None:
        """Empty the event log (confirmation is the caller's job)."""
        self.events.clear()

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def configure_webhook(self, url: Optional[str], enabled: bool = True) -> AppSettings:
        """
        Set the webhook URL and toggle notifications.

        Changing or disabling an enabled webhook needs a PIN session.

        Raises:
            AuthorizationFailure: Session required but missing.
            ValidationError: Invalid URL.
            PersistenceError: If saving fails.
        """
        current = self.settings
        if current.webhook_enabled and (not enabled or url != current.webhook_url):
            self.gate.require_session("changing notifications")
        return self.settings_manager.update(webhook_url=url or None, webhook_enabled=enabled)

    def set_notification_preferences(self, **flags: bool) -> AppSettings:
        """
        Choose which events are sent to the webhook.

        Accepts send_block_notifications, send_unblock_notifications,
        send_killswitch_notifications and send_violation_notifications.
        Turning one off while the webhook is enabled needs a PIN session.
        """
        allowed = set(_NOTIFICATION_FLAGS.values())
        unknown = flags.keys() - allowed
        if unknown:
            raise ValidationError(f"Unknown notification setting(s): {', '.join(sorted(unknown))}")
        current = self.settings
        turning_off = any(not value and getattr(current, name) for name, value in flags.items())
        if current.webhook_enabled and turning_off:
            self.gate.require_session("muting notifications")
        return self.settings_manager.update(**flags)

    def send_test_notification(self, url: Optional[str] = None) -> bool:
        """Send a test message synchronously. Returns delivery success."""
        target = url or self.settings.webhook_url
        if not target:
            return False
        return self._notifier_factory(target).send(connection_test_message())

    def _send_notification(self, kind: str, message: str) -> bool:
        """Queue a webhook message if enabled for this kind. Never blocks."""
        try:
            settings = self.settings_manager.load()
        except PersistenceError as e:
            logger.debug(f"Skipping notification, settings unreadable: {e}")
            return False
        if not settings.webhook_enabled or not settings.webhook_url:
            return False
        if not getattr(settings, _NOTIFICATION_FLAGS[kind]):
            return False
        try:
            self._notifier_factory(settings.webhook_url).send_async(message)
        except Exception as e:
            logger.warning(f"Could not dispatch {kind} notification: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Enforcement ticks
    # ------------------------------------------------------------------

    def _kill(self, proc: ProcessInfo) -> bool:
        """Kill one process; failures are logged and reported as False."""
        try:
            killed = self.inspector.kill_process(proc.pid)
        except Exception as e:
            logger.error(f"Failed to kill {proc.name} (PID: {proc.pid}): {e}")
            return False
        if not killed:
            logger.warning(f"Could not kill {proc.name} (PID: {proc.pid})")
        return bool(killed)

    def _record_violation(
        self,
        target: str,
        message: str,
        domains: Optional[List[str]] = None,
    ) -> None:
        record = self.events.append(config.EVENT_VIOLATION, target, message, timestamp=self._clock())
        if self.on_violation:
            try:
                self.on_violation(record)
            except Exception as e:
                logger.debug(f"on_violation callback error: {e}")
        self._send_notification(config.EVENT_VIOLATION, violation_message(target, domains))

    def run_app_tick(self) -> int:
        """
        One app enforcement cycle.

        Kills every running process that matches an active app rule. Each
        process is matched against the first rule it fits and killed at
        most once per tick. Enumeration failures skip the cycle; a failed
        kill moves on to the next process.

        Returns:
            Number of processes killed.
        """
        self._sync_armed_flags()
        if not self.state.armed:
            self._blocked_apps = ()
            return 0

        now = self._clock()
        self.last_app_tick = now
        rules = active_rules(self.rules.app_rules(), now)
        if not rules:
            self._blocked_apps = ()
            return 0

        try:
            processes = self.inspector.list_processes()
        except Exception as e:
            logger.warning(f"Could not list processes, skipping cycle: {e}")
            self._notify_error("enumeration_failed", str(e))
            return 0

        own_pid = os.getpid()
        handled = set()
        blocked = []
        killed = 0
        for proc in processes:
            if not proc.pid or proc.pid == own_pid or proc.pid in handled:
                continue
            rule = find_matching_rule(rules, proc.name, proc.path)
            if rule is None:
                continue
            handled.add(proc.pid)
            blocked.append({"name": proc.name, "path": proc.path, "pid": proc.pid, "rule": rule.app_name})

            if self._kill(proc):
                killed += 1
                logger.info(f"Blocked and killed: {proc.name} (PID: {proc.pid}) - matched rule: {rule.app_name}")
                self._record_violation(
                    rule.app_name,
                    f"Closed {proc.name} (PID {proc.pid}) - blocked by rule for {rule.app_name}",
                )

        self._blocked_apps = tuple(blocked)
        return killed

    def run_website_tick(self) -> int:
        """
        One website enforcement cycle.

        While any website rule is active, every running browser is closed,
        because individual tabs cannot be targeted. The first kill waits
        for the grace period after rules turn active, and a browser
        (identified by executable path) is not killed again within the
        cooldown window.

        Returns:
            Number of browser processes killed.
        """
        self._sync_armed_flags()
        if not (self.state.armed and self.state.website_armed):
            self._blocked_browsers = ()
            return 0

        now = self._clock()
        self.last_website_tick = now
        rules = active_rules(self.rules.website_rules(), now)
        if not rules:
            self.state.mark_website_rules_inactive()
            self._blocked_browsers = ()
            return 0

        active_since = self.state.mark_website_rules_active(now)
        if now - active_since < self.website_grace:
            remaining = (self.website_grace - (now - active_since)).total_seconds()
            logger.debug(f"Website grace period: {remaining:.0f}s before browsers are closed")
            return 0

        try:
            browsers = self.inspector.list_browser_processes()
        except Exception as e:
            logger.warning(f"Could not list browsers, skipping cycle: {e}")
            self._notify_error("enumeration_failed", str(e))
            return 0

        domains = list(dict.fromkeys(rule.domain for rule in rules))
        cooldowns = self.state.cooldowns
        blocked = []
        killed = 0
        for browser in browsers:
            if not browser.pid or not browser.path:
                continue
            blocked.append({"name": browser.name, "path": browser.path, "pid": browser.pid, "domains": domains})

            with self.state.lock:
                if cooldowns.is_cooling(browser.path, now):
                    remaining = cooldowns.remaining(browser.path, now).total_seconds()
                    logger.debug(f"Skipping {browser.name} - cooldown active ({remaining:.0f}s remaining)")
                    continue

            if not self._kill(browser):
                continue

            with self.state.lock:
                # A disarm during the kill already cleared the table; keep it clear
                if self.state.armed and self.state.website_armed:
                    cooldowns.record(browser.path, now)
            killed += 1
            logger.info(
                f"Killed browser {browser.name} (PID: {browser.pid}) - "
                f"{len(rules)} website rule(s) active"
            )
            self._record_violation(
                browser.name,
                f"Closed {browser.name} - blocked websites: {', '.join(domains)}",
                domains=domains,
            )

        self._blocked_browsers = tuple(blocked)
        return killed

    # ------------------------------------------------------------------
    # Callback helpers
    # ------------------------------------------------------------------

    def _notify_status_change(self) -> None:
        """Tell listeners the armed flags changed."""
        if self.on_status_change:
            try:
                self.on_status_change(self.state.armed, self.state.website_armed)
            except Exception as e:
                logger.debug(f"on_status_change callback error: {e}")

    def _notify_error(self, error_type: str, message: str) -> None:
        """Notify of an error via callback."""
        if self.on_error:
            try:
                self.on_error(error_type, message)
            except Exception as e:
                logger.debug(f"on_error callback error: {e}")
