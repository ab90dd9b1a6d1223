"""
Block rule data model.

A rule pairs a target (an application or a website domain) with an
activation window. The window is a tagged variant:

    PermanentWindow  - always active while the rule is enabled
    TimerWindow      - active for duration_minutes from start_time
    ScheduleWindow   - active on chosen weekdays between two clock times

Rules are immutable; edits produce a new validated instance through
``with_updates``. Rules round-trip through plain dicts (``to_dict`` /
``rule_from_dict``) for persistence.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

import config
from core.errors import ValidationError

logger = logging.getLogger(__name__)

# Fields that are never editable after creation
_IMMUTABLE_FIELDS = {"id", "kind", "created_at"}


def generate_rule_id() -> str:
    """Generate a unique rule ID."""
    return uuid.uuid4().hex


def normalize_domain(domain: str) -> str:
    """
    Normalise a user-entered website into a bare domain.

    Lowercases, drops the http(s) scheme, a leading "www.", any path and
    any trailing slash. "https://www.YouTube.com/watch?v=1" -> "youtube.com".
    """
    domain = (domain or "").strip().lower()
    domain = re.sub(r"^https?://", "", domain)
    domain = re.sub(r"^www\.", "", domain)
    domain = domain.rstrip("/")
    return domain.split("/")[0]


def _require_int(name: str, value: Any, low: int, high: Optional[int] = None) -> int:
    """Validate an integer field within [low, high]."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < low or (high is not None and value > high):
        bounds = f"[{low}, {high}]" if high is not None else f">= {low}"
        raise ValidationError(f"{name} must be in {bounds}, got {value}")
    return value


def _parse_datetime(name: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(f"{name} must be a datetime or ISO timestamp, got {value!r}")


# ----------------------------------------------------------------------
# Activation windows
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class PermanentWindow:
    """Blocks whenever the rule is enabled."""

    kind = config.RULE_PERMANENT

    def to_dict(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class TimerWindow:
    """Blocks for a fixed number of minutes from start_time."""

    start_time: datetime
    duration_minutes: int

    kind = config.RULE_TIMER

    def __post_init__(self):
        object.__setattr__(self, "start_time", _parse_datetime("start_time", self.start_time))
        _require_int("duration_minutes", self.duration_minutes, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat(),
            "duration_minutes": self.duration_minutes,
        }


@dataclass(frozen=True)
class ScheduleWindow:
    """
    Blocks on the given weekdays between start and end clock times.

    Weekdays use Sunday=0 .. Saturday=6. Both bounds are inclusive. A
    window whose end is earlier than its start does not wrap past midnight
    and is therefore never active.
    """

    days: FrozenSet[int]
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int

    kind = config.RULE_SCHEDULE

    def __post_init__(self):
        if isinstance(self.days, (str, bytes)) or not isinstance(self.days, Iterable):
            raise ValidationError(f"days must be a collection of weekday indices, got {self.days!r}")
        days = frozenset(_require_int("day", d, 0, 6) for d in self.days)
        object.__setattr__(self, "days", days)
        _require_int("start_hour", self.start_hour, 0, 23)
        _require_int("end_hour", self.end_hour, 0, 23)
        _require_int("start_minute", self.start_minute, 0, 59)
        _require_int("end_minute", self.end_minute, 0, 59)

    @property
    def start_minutes(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_minutes(self) -> int:
        return self.end_hour * 60 + self.end_minute

    @property
    def ends_before_start(self) -> bool:
        return self.end_minutes < self.start_minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days": sorted(self.days),
            "start_hour": self.start_hour,
            "start_minute": self.start_minute,
            "end_hour": self.end_hour,
            "end_minute": self.end_minute,
        }


Window = Union[PermanentWindow, TimerWindow, ScheduleWindow]

_WINDOW_FIELDS = {
    config.RULE_PERMANENT: (),
    config.RULE_TIMER: ("start_time", "duration_minutes"),
    config.RULE_SCHEDULE: ("days", "start_hour", "start_minute", "end_hour", "end_minute"),
}


def build_window(kind: str, **params: Any) -> Window:
    """
    Build an activation window from a kind and its parameters.

    Raises:
        ValidationError: Unknown kind, missing/unexpected parameters or
            out-of-range values.
    """
    if kind not in _WINDOW_FIELDS:
        raise ValidationError(f"Unknown rule kind: {kind!r}")

    expected = set(_WINDOW_FIELDS[kind])
    missing = expected - params.keys()
    extra = params.keys() - expected
    if missing:
        raise ValidationError(f"{kind} rule is missing {', '.join(sorted(missing))}")
    if extra:
        raise ValidationError(f"{kind} rule does not accept {', '.join(sorted(extra))}")

    if kind == config.RULE_TIMER:
        return TimerWindow(**params)
    if kind == config.RULE_SCHEDULE:
        return ScheduleWindow(**params)
    return PermanentWindow()


# ----------------------------------------------------------------------
# Rules
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class BlockRule:
    """Fields shared by app and website rules."""

    window: Window
    id: str = field(default_factory=generate_rule_id)
    enabled: bool = True
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not isinstance(self.window, (PermanentWindow, TimerWindow, ScheduleWindow)):
            raise ValidationError(f"Invalid rule window: {self.window!r}")
        if not isinstance(self.id, str) or not self.id:
            raise ValidationError("Rule id must be a non-empty string")
        if not isinstance(self.enabled, bool):
            raise ValidationError(f"enabled must be a boolean, got {self.enabled!r}")
        object.__setattr__(self, "created_at", _parse_datetime("created_at", self.created_at))

    @property
    def kind(self) -> str:
        return self.window.kind

    @property
    def target(self) -> str:
        raise NotImplementedError

    def _target_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        """Convert the rule to a JSON-serialisable dict."""
        data = {
            "id": self.id,
            "kind": self.kind,
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat(),
        }
        data.update(self._target_dict())
        data.update(self.window.to_dict())
        return data

    def with_updates(self, **updates: Any) -> "BlockRule":
        """
        Return a copy with the given fields changed, fully re-validated.

        Accepts target fields, ``enabled`` and the parameters of the
        rule's own kind. ``id``, ``kind`` and ``created_at`` are immutable;
        changing kind means deleting the rule and creating a new one.

        Raises:
            ValidationError: If a field is immutable, unknown, or the merged
                rule is invalid. The original rule is never modified.
        """
        frozen = _IMMUTABLE_FIELDS & updates.keys()
        if frozen:
            raise ValidationError(f"Cannot change {', '.join(sorted(frozen))} of an existing rule")
        data = self.to_dict()
        unknown = updates.keys() - data.keys()
        if unknown:
            raise ValidationError(f"Unknown field(s) for {self.kind} rule: {', '.join(sorted(unknown))}")
        data.update(updates)
        return rule_from_dict(type(self), data)


@dataclass(frozen=True)
class AppRule(BlockRule):
    """Blocks a desktop application, matched by executable path or name."""

    app_name: str = ""
    app_path: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.app_name, str) or not self.app_name.strip():
            raise ValidationError("App rule needs a non-empty app name")
        if not isinstance(self.app_path, str):
            raise ValidationError(f"app_path must be a string, got {self.app_path!r}")
        object.__setattr__(self, "app_name", self.app_name.strip())
        object.__setattr__(self, "app_path", self.app_path.strip())

    @property
    def target(self) -> str:
        return self.app_name

    def _target_dict(self) -> Dict[str, Any]:
        return {"app_name": self.app_name, "app_path": self.app_path}


@dataclass(frozen=True)
class WebsiteRule(BlockRule):
    """Blocks a website, identified by its normalised domain."""

    domain: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.domain, str):
            raise ValidationError(f"domain must be a string, got {self.domain!r}")
        normalized = normalize_domain(self.domain)
        if not normalized:
            raise ValidationError("Website rule needs a non-empty domain")
        object.__setattr__(self, "domain", normalized)

    @property
    def target(self) -> str:
        return self.domain

    def _target_dict(self) -> Dict[str, Any]:
        return {"domain": self.domain}


_TARGET_FIELDS = {
    AppRule: ("app_name", "app_path"),
    WebsiteRule: ("domain",),
}


def rule_from_dict(rule_cls: type, data: Dict[str, Any]) -> BlockRule:
    """
    Create an AppRule or WebsiteRule from its dict form.

    Args:
        rule_cls: AppRule or WebsiteRule.
        data: Dict as produced by ``to_dict``.

    Raises:
        ValidationError: If required fields are missing or invalid.
    """
    if rule_cls not in _TARGET_FIELDS:
        raise TypeError(f"Not a rule class: {rule_cls!r}")
    if not isinstance(data, dict):
        raise ValidationError(f"Rule data must be a mapping, got {type(data).__name__}")

    kind = data.get("kind")
    if kind not in _WINDOW_FIELDS:
        raise ValidationError(f"Unknown rule kind: {kind!r}")

    params = {name: data[name] for name in _WINDOW_FIELDS[kind] if name in data}
    window = build_window(kind, **params)

    kwargs: Dict[str, Any] = {"window": window}
    for name in ("id", "enabled", "created_at") + _TARGET_FIELDS[rule_cls]:
        if name in data:
            kwargs[name] = data[name]
    return rule_cls(**kwargs)
