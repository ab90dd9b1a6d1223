#!/usr/bin/env python3
"""
Holdfast - Main Entry Point

A local app and website blocker. Closes blocked applications while their
rules are active, closes browsers while website rules are active, and
protects "turn it off" actions behind a PIN.

Usage:
    python main.py run                    # Run the enforcement daemon
    python main.py status                 # Show armed state and rule counts
    python main.py add-app Steam --path "C:\\Games\\Steam\\steam.exe"
    python main.py add-site youtube.com --timer 60
    python main.py arm / disarm           # Protection on / off (off needs PIN)
    python main.py killswitch             # Disable everything, no PIN
"""

# =============================================================================
# PyInstaller bundled app path fix - MUST BE BEFORE ANY OTHER IMPORTS
# =============================================================================
import os
import sys

if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
    _bundle_dir = sys._MEIPASS
    os.chdir(_bundle_dir)
    if _bundle_dir not in sys.path:
        sys.path.insert(0, _bundle_dir)

import time
import getpass
import logging
import argparse
from typing import Callable, List, Optional

import config
from core.auth import ActionDecision
from core.engine import EnforcementEngine
from core.errors import AuthorizationFailure, HoldfastError
from instance_lock import check_single_instance, get_existing_pid
from rules.categories import get_category_summaries
from rules.formatting import DAY_NAMES

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format=config.LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Suppress noisy third-party library logs (HTTP requests, etc.)
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("requests").setLevel(logging.WARNING)


# =============================================================================
# Helpers
# =============================================================================

def parse_days(value: str) -> List[int]:
    """
    Parse a day list such as "mon,tue,fri", "weekdays" or "0,6".

    Days are Sunday=0 .. Saturday=6.
    """
    value = value.strip().lower()
    if value == "weekdays":
        return [1, 2, 3, 4, 5]
    if value == "weekends":
        return [0, 6]
    if value in ("daily", "everyday", "all"):
        return list(range(7))

    short_names = [name[:3].lower() for name in DAY_NAMES]
    days = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if part.isdigit():
            days.append(int(part))
        elif part[:3] in short_names:
            days.append(short_names.index(part[:3]))
        else:
            raise argparse.ArgumentTypeError(f"Unknown day: {part}")
    return days


def parse_clock(value: str):
    """Parse "HH:MM" (24-hour) into (hour, minute)."""
    try:
        hour_text, minute_text = value.strip().split(":")
        return int(hour_text), int(minute_text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected HH:MM, got {value!r}")


def window_params(args: argparse.Namespace) -> dict:
    """Turn --timer / --schedule options into a rule kind plus parameters."""
    if args.timer is not None:
        return {"kind": config.RULE_TIMER, "duration_minutes": args.timer}
    if args.days is not None:
        if args.start is None or args.end is None:
            raise HoldfastError("Schedule rules need --start and --end")
        (start_hour, start_minute), (end_hour, end_minute) = args.start, args.end
        return {
            "kind": config.RULE_SCHEDULE,
            "days": args.days,
            "start_hour": start_hour,
            "start_minute": start_minute,
            "end_hour": end_hour,
            "end_minute": end_minute,
        }
    return {"kind": config.RULE_PERMANENT}


def prompt_pin(engine: EnforcementEngine, prompt: str = "PIN: ") -> bool:
    """
    Ask for the PIN until it verifies or attempts run out.

    Returns:
        True once a session is open.
    """
    if not engine.settings.pin_hash:
        print("No PIN is set. Run 'python main.py set-pin' first.")
        return False
    for attempt in range(1, config.MAX_PIN_ATTEMPTS + 1):
        pin = getpass.getpass(prompt)
        if engine.verify_pin(pin):
            return True
        remaining = config.MAX_PIN_ATTEMPTS - attempt
        if remaining:
            print(f"Incorrect PIN. {remaining} attempt(s) left.")
    print("Incorrect PIN.")
    return False


def run_protected(engine: EnforcementEngine, requires_auth: bool, action: Callable[[], None]) -> bool:
    """Run an action, challenging for the PIN first when it needs one."""
    if engine.begin_action(requires_auth) == ActionDecision.NEEDS_CHALLENGE:
        if not prompt_pin(engine):
            return False
    action()
    return True


def rule_requires_auth(engine: EnforcementEngine, rule_id: str) -> bool:
    rule = engine.rules.get(rule_id)
    if rule is None:
        raise KeyError(f"No rule with id {rule_id}")
    return rule.enabled and engine.state.armed


def print_rules(engine: EnforcementEngine) -> None:
    rows = engine.get_rules()
    if not rows:
        print("No rules yet. Add one with add-app or add-site.")
        return
    for row in rows:
        state = "on " if row["enabled"] else "off"
        marker = "*" if row["active"] else " "
        print(f"{marker} [{state}] {row['id'][:8]}  {row['type']:<7} {row['target']:<28} {row['description']}")
    print("\n* = currently blocking")


# =============================================================================
# Commands
# =============================================================================

def cmd_run(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    """Run the enforcement loops until interrupted."""
    if not check_single_instance():
        existing_pid = get_existing_pid()
        pid_info = f" (PID: {existing_pid})" if existing_pid else ""
        print(f"\n{config.APP_NAME} is already running{pid_info}.")
        print("Only one instance can run at a time.\n")
        return 1

    engine.on_violation = lambda record: print(f"⛔ {record.message}")
    engine.on_status_change = lambda armed, website: print(
        f"Protection {'ON' if armed else 'OFF'} (websites {'ON' if website else 'OFF'})"
    )

    print("\n" + "=" * 60)
    print(f"🔒 {config.APP_NAME} is running")
    print("=" * 60)
    status = engine.get_status()
    print(f"\nProtection: {'ON' if status['armed'] else 'OFF'}")
    print(f"Website blocking: {'ON' if status['website_armed'] else 'OFF'}")
    print(f"Rules: {status['app_rules']} app, {status['website_rules']} website")
    print("\nPress Ctrl+C to stop.\n")

    engine.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n\nStopping...")
    finally:
        engine.cleanup()
    return 0


def cmd_status(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    status = engine.get_status()
    print(f"Protection:        {'ON' if status['armed'] else 'OFF'}")
    print(f"Website blocking:  {'ON' if status['website_armed'] else 'OFF'}")
    print(f"App rules:         {status['active_app_rules']} active / {status['app_rules']} total")
    print(f"Website rules:     {status['active_website_rules']} active / {status['website_rules']} total")
    print(f"PIN set:           {'yes' if status['setup_complete'] else 'no'}")
    return 0


def cmd_list(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    if args.apps:
        for proc in engine.inspector.list_applications():
            print(f"{proc.name:<32} {proc.path}")
        return 0
    if args.categories:
        for category_id, info in get_category_summaries().items():
            print(f"{category_id:<14} {info['name']:<24} {info['domain_count']} sites")
        return 0
    print_rules(engine)
    return 0


def cmd_add_app(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    params = window_params(args)
    rule = engine.add_app_rule(args.name, app_path=args.path or "", **params)
    print(f"Added app rule {rule.id[:8]} for {rule.app_name}")
    return 0


def cmd_add_site(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    params = window_params(args)
    rule = engine.add_website_rule(args.domain, **params)
    print(f"Added website rule {rule.id[:8]} for {rule.domain}")
    return 0


def cmd_add_category(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    params = window_params(args)
    added = engine.add_website_category(args.category, **params)
    print(f"Added {len(added)} website rule(s) from '{args.category}'")
    return 0


def _resolve_rule_id(engine: EnforcementEngine, prefix: str) -> str:
    """Accept a full rule id or a unique prefix of one."""
    matches = [rule.id for rule in engine.rules.all_rules() if rule.id.startswith(prefix)]
    if len(matches) != 1:
        raise KeyError(f"No unique rule matches {prefix!r}")
    return matches[0]


def cmd_enable(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    rule_id = _resolve_rule_id(engine, args.rule_id)
    engine.set_rule_enabled(rule_id, True)
    print("Rule enabled")
    return 0


def cmd_disable(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    rule_id = _resolve_rule_id(engine, args.rule_id)
    done = run_protected(
        engine,
        rule_requires_auth(engine, rule_id),
        lambda: engine.set_rule_enabled(rule_id, False),
    )
    if done:
        print("Rule disabled")
    return 0 if done else 1


def cmd_remove(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    rule_id = _resolve_rule_id(engine, args.rule_id)
    done = run_protected(
        engine,
        rule_requires_auth(engine, rule_id),
        lambda: engine.remove_rule(rule_id),
    )
    if done:
        print("Rule removed")
    return 0 if done else 1


def cmd_arm(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    engine.arm()
    print("Protection ON")
    return 0


def cmd_disarm(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    if not engine.state.armed:
        print("Protection is already OFF")
        return 0
    done = run_protected(engine, True, engine.disarm)
    if done:
        print("Protection OFF")
    return 0 if done else 1


def cmd_website(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    enabled = args.state == "on"
    done = run_protected(
        engine,
        not enabled and engine.state.website_armed,
        lambda: engine.set_website_armed(enabled),
    )
    if done:
        print(f"Website blocking {'ON' if enabled else 'OFF'}")
    return 0 if done else 1


def cmd_killswitch(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    engine.emergency_override()
    print("🚨 Killswitch activated - all blocking disabled")
    return 0


def cmd_events(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    if args.clear:
        answer = input("Delete the whole event log? This cannot be undone. [y/N] ")
        if answer.strip().lower() != "y":
            print("Cancelled")
            return 1
        engine.clear_events()
        print("Event log cleared")
        return 0

    records = engine.list_events()
    if not records:
        print("No events recorded")
        return 0
    for record in records[:args.limit]:
        print(f"{record.timestamp:%Y-%m-%d %H:%M:%S}  {record.kind:<10} {record.target:<24} {record.message}")
    return 0


def cmd_set_pin(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    if engine.settings.pin_hash and not prompt_pin(engine, "Current PIN: "):
        return 1
    new_pin = getpass.getpass("New PIN: ")
    if getpass.getpass("Confirm PIN: ") != new_pin:
        print("PINs do not match")
        return 1
    engine.set_pin(new_pin)
    print("PIN saved")
    return 0


def cmd_webhook(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    enabled = not args.disable
    url = None if args.disable else args.url
    if enabled and not url:
        print("Give a webhook URL, or --disable")
        return 1

    current = engine.settings
    flags = {
        name: value
        for name, value in (
            ("send_block_notifications", args.blocks),
            ("send_unblock_notifications", args.unblocks),
            ("send_violation_notifications", args.violations),
        )
        if value is not None
    }
    muting = any(value is False and getattr(current, name) for name, value in flags.items())
    requires_auth = current.webhook_enabled and (not enabled or url != current.webhook_url or muting)

    def apply() -> None:
        engine.configure_webhook(url if enabled else current.webhook_url, enabled=enabled)
        if flags:
            engine.set_notification_preferences(**flags)

    done = run_protected(engine, requires_auth, apply)
    if done:
        print(f"Webhook notifications {'enabled' if enabled else 'disabled'}")
    return 0 if done else 1


def cmd_test_webhook(engine: EnforcementEngine, args: argparse.Namespace) -> int:
    if engine.send_test_notification(args.url):
        print("✅ Test message delivered")
        return 0
    print("❌ Test message failed (check the URL)")
    return 1


# =============================================================================
# Argument parsing
# =============================================================================

def _add_window_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("when to block (default: always)")
    group.add_argument("--timer", type=int, metavar="MINUTES", help="Block for MINUTES starting now")
    group.add_argument("--days", type=parse_days, help="Schedule days, e.g. mon,wed or weekdays")
    group.add_argument("--start", type=parse_clock, help="Schedule start time HH:MM")
    group.add_argument("--end", type=parse_clock, help="Schedule end time HH:MM")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"{config.APP_NAME} - App and Website Blocker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py run                               Run the blocker
  python main.py add-app Discord                   Always block Discord
  python main.py add-site reddit.com --timer 90    Block reddit for 90 minutes
  python main.py add-category social --days weekdays --start 09:00 --end 17:00
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Run the enforcement daemon").set_defaults(func=cmd_run)
    subparsers.add_parser("status", help="Show protection status").set_defaults(func=cmd_status)

    list_parser = subparsers.add_parser("list", help="List rules")
    list_parser.add_argument("--apps", action="store_true", help="List running applications instead")
    list_parser.add_argument("--categories", action="store_true", help="List website categories instead")
    list_parser.set_defaults(func=cmd_list)

    add_app = subparsers.add_parser("add-app", help="Block an application")
    add_app.add_argument("name", help="Application name, e.g. Discord")
    add_app.add_argument("--path", help="Executable path (improves matching)")
    _add_window_arguments(add_app)
    add_app.set_defaults(func=cmd_add_app)

    add_site = subparsers.add_parser("add-site", help="Block a website")
    add_site.add_argument("domain", help="Domain or URL, e.g. youtube.com")
    _add_window_arguments(add_site)
    add_site.set_defaults(func=cmd_add_site)

    add_category = subparsers.add_parser("add-category", help="Block a preset group of websites")
    add_category.add_argument("category", help="Category id (see 'list --categories')")
    _add_window_arguments(add_category)
    add_category.set_defaults(func=cmd_add_category)

    for name, func, help_text in (
        ("enable", cmd_enable, "Enable a rule"),
        ("disable", cmd_disable, "Disable a rule (PIN needed while armed)"),
        ("remove", cmd_remove, "Delete a rule (PIN needed while armed)"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("rule_id", help="Rule id or unique prefix")
        sub.set_defaults(func=func)

    subparsers.add_parser("arm", help="Turn protection on").set_defaults(func=cmd_arm)
    subparsers.add_parser("disarm", help="Turn protection off (PIN)").set_defaults(func=cmd_disarm)

    website = subparsers.add_parser("website", help="Turn website blocking on or off")
    website.add_argument("state", choices=["on", "off"])
    website.set_defaults(func=cmd_website)

    subparsers.add_parser(
        "killswitch", help="Emergency: disable all blocking without a PIN"
    ).set_defaults(func=cmd_killswitch)

    events = subparsers.add_parser("events", help="Show the event log")
    events.add_argument("--clear", action="store_true", help="Delete all events")
    events.add_argument("--limit", type=int, default=config.MAX_EVENTS, help="Number of events to show")
    events.set_defaults(func=cmd_events)

    subparsers.add_parser("set-pin", help="Set or change the PIN").set_defaults(func=cmd_set_pin)

    webhook = subparsers.add_parser("webhook", help="Configure webhook notifications")
    webhook.add_argument("url", nargs="?", help="Discord-compatible webhook URL")
    webhook.add_argument("--disable", action="store_true", help="Turn notifications off")
    for flag, dest in (("blocks", "blocks"), ("unblocks", "unblocks"), ("violations", "violations")):
        webhook.add_argument(f"--{flag}", dest=dest, action="store_true", default=None,
                             help=f"Notify on {flag}")
        webhook.add_argument(f"--no-{flag}", dest=dest, action="store_false",
                             help=f"Do not notify on {flag}")
    webhook.set_defaults(func=cmd_webhook)

    test_webhook = subparsers.add_parser("test-webhook", help="Send a test notification")
    test_webhook.add_argument("url", nargs="?", help="URL to test (default: saved URL)")
    test_webhook.set_defaults(func=cmd_test_webhook)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point - parses arguments and runs the chosen command."""
    args = build_parser().parse_args(argv)

    try:
        engine = EnforcementEngine()
        return args.func(engine, args)
    except KeyboardInterrupt:
        print("\n\nGoodbye!")
        return 0
    except AuthorizationFailure as e:
        print(f"\n🔐 {e}")
        return 1
    except (HoldfastError, KeyError) as e:
        print(f"\nError: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"\nFatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
