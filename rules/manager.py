"""
Rule persistence and editing.

RuleBook owns the app and website rule lists. Every change is written to
storage first and only then becomes visible in memory, so a failed write
never leaves a half-applied edit behind.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple, Type

import config
from core.errors import ValidationError
from rules.models import AppRule, BlockRule, WebsiteRule, rule_from_dict
from storage.json_store import JsonStore

logger = logging.getLogger(__name__)

_STORAGE_KEYS: Dict[Type[BlockRule], str] = {
    AppRule: config.STORAGE_BLOCK_RULES,
    WebsiteRule: config.STORAGE_WEBSITE_RULES,
}


class RuleBook:
    """
    Loads, caches and saves block rules.

    Reads return immutable tuples that are safe to iterate from any thread.
    The cache is refreshed whenever the underlying storage changes, which
    includes edits made by another process.
    """

    def __init__(self, store: JsonStore):
        """
        Initialize the rule book.

        Args:
            store: Key-value store holding the rule lists.
        """
        self.store = store
        self._lock = threading.RLock()
        self._cache: Dict[Type[BlockRule], Tuple[int, Tuple[BlockRule, ...]]] = {}

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _load(self, rule_cls: Type[BlockRule]) -> Tuple[BlockRule, ...]:
        key = _STORAGE_KEYS[rule_cls]
        with self._lock:
            version = self.store.version(key)
            cached = self._cache.get(rule_cls)
            if cached is not None and cached[0] == version:
                return cached[1]

            rules: List[BlockRule] = []
            for item in self.store.get(key, []) or []:
                try:
                    rules.append(rule_from_dict(rule_cls, item))
                except (ValidationError, TypeError) as e:
                    logger.warning(f"Skipping invalid stored {key} entry {item!r}: {e}")
            loaded = tuple(rules)
            self._cache[rule_cls] = (version, loaded)
            logger.debug(f"Loaded {len(loaded)} rule(s) from {key}")
            return loaded

    def app_rules(self) -> Tuple[AppRule, ...]:
        """All app rules, in creation order."""
        return self._load(AppRule)  # type: ignore[return-value]

    def website_rules(self) -> Tuple[WebsiteRule, ...]:
        """All website rules, in creation order."""
        return self._load(WebsiteRule)  # type: ignore[return-value]

    def all_rules(self) -> Tuple[BlockRule, ...]:
        return self.app_rules() + self.website_rules()

    def get(self, rule_id: str) -> Optional[BlockRule]:
        """Find a rule by ID across both lists."""
        for rule in self.all_rules():
            if rule.id == rule_id:
                return rule
        return None

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _save(self, rule_cls: Type[BlockRule], rules: List[BlockRule]) -> None:
        """Persist a rule list, then refresh the cache. Caller holds the lock."""
        key = _STORAGE_KEYS[rule_cls]
        self.store.set(key, [rule.to_dict() for rule in rules])
        self._cache[rule_cls] = (self.store.version(key), tuple(rules))

    def add(self, rule: BlockRule) -> BlockRule:
        """
        Add a new rule.

        Raises:
            ValidationError: If a rule with the same ID already exists.
            PersistenceError: If saving fails (the rule is not added).
        """
        rule_cls = type(rule)
        if rule_cls not in _STORAGE_KEYS:
            raise TypeError(f"Not a rule: {rule!r}")
        with self._lock:
            if self.get(rule.id) is not None:
                raise ValidationError(f"Rule {rule.id} already exists")
            rules = list(self._load(rule_cls))
            rules.append(rule)
            self._save(rule_cls, rules)
        logger.info(f"Added {rule.kind} {rule_cls.__name__} for {rule.target}")
        return rule

    def update(self, rule_id: str, **updates: Any) -> BlockRule:
        """
        Apply a partial update to a rule.

        The merged rule is re-validated before anything is saved.

        Raises:
            KeyError: Unknown rule ID.
            ValidationError: Invalid or immutable fields.
            PersistenceError: If saving fails (the rule is unchanged).
        """
        with self._lock:
            current = self.get(rule_id)
            if current is None:
                raise KeyError(rule_id)
            updated = current.with_updates(**updates)
            rule_cls = type(current)
            rules = [updated if r.id == rule_id else r for r in self._load(rule_cls)]
            self._save(rule_cls, rules)
        logger.info(f"Updated rule for {updated.target}: {sorted(updates)}")
        return updated

    def remove(self, rule_id: str) -> BlockRule:
        """
        Delete a rule.

        Raises:
            KeyError: Unknown rule ID.
            PersistenceError: If saving fails (the rule is kept).
        """
        with self._lock:
            current = self.get(rule_id)
            if current is None:
                raise KeyError(rule_id)
            rule_cls = type(current)
            rules = [r for r in self._load(rule_cls) if r.id != rule_id]
            self._save(rule_cls, rules)
        logger.info(f"Removed rule for {current.target}")
        return current
