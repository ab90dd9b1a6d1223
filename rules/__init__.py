"""
Rules package - block rule model, activation and persistence.
"""

from rules.activation import is_rule_active
from rules.manager import RuleBook
from rules.models import AppRule, WebsiteRule, build_window, normalize_domain

__all__ = ["AppRule", "WebsiteRule", "RuleBook", "build_window", "is_rule_active", "normalize_domain"]
