"""Matching running processes against app rules."""

import re
from typing import Optional, Sequence

import config
from rules.models import AppRule


def normalize_path(path: str) -> str:
    """Lowercase a path and use forward slashes."""
    return (path or "").strip().lower().replace("\\", "/")


def strip_executable_extension(name: str) -> str:
    """Drop a trailing executable suffix (.exe, .app) from a lowercase name."""
    for ext in config.EXECUTABLE_EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)]
    return name


def executable_stem(path: str) -> str:
    """Case-insensitive, extension-stripped file name of a path."""
    basename = re.split(r"[\\/]", (path or "").strip())[-1].lower()
    return strip_executable_extension(basename)


def rule_matches_process(rule: AppRule, name: str, path: str) -> bool:
    """
    Check whether a process belongs to the application a rule blocks.

    Matches, in order:
        1. identical normalised executable paths
        2. identical executable file names (extension stripped)
        3. process name equal to the rule's app name (extension stripped)
    """
    rule_path = normalize_path(rule.app_path)
    process_path = normalize_path(path)
    if rule_path and process_path and rule_path == process_path:
        return True

    rule_file = executable_stem(rule.app_path)
    process_file = executable_stem(path)
    if rule_file and process_file and rule_file == process_file:
        return True

    process_name = strip_executable_extension((name or "").strip().lower())
    rule_name = strip_executable_extension(rule.app_name.lower())
    return bool(process_name and rule_name and process_name == rule_name)


def find_matching_rule(rules: Sequence[AppRule], name: str, path: str) -> Optional[AppRule]:
    """Return the first rule matching a process, or None."""
    for rule in rules:
        if rule_matches_process(rule, name, path):
            return rule
    return None
