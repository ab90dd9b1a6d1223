"""
PIN authorization for destructive actions.

Turning protection off, deleting enabled rules and editing enabled rules
require the user to have entered their PIN within the last few minutes.
The killswitch is the one exception: it disables everything without a PIN
and always leaves an audit record.

State machine per process:

    Unauthenticated --verify(correct PIN)--> Authenticated(expires_at)
    Authenticated --expiry or invalidate()--> Unauthenticated

Sessions are never persisted; every process starts unauthenticated.
"""

import base64
import hashlib
import hmac
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

import config
from core.errors import AuthorizationFailure, ValidationError
from core.state import EngineState
from tracking.events import EventRecorder

logger = logging.getLogger(__name__)

_HASH_SCHEME = "pbkdf2_sha256"


# ----------------------------------------------------------------------
# PIN hashing
# ----------------------------------------------------------------------

def validate_pin(pin: str) -> str:
    """
    Check that a PIN is all digits and long enough.

    Raises:
        ValidationError: If the PIN is unacceptable.
    """
    pin = (pin or "").strip()
    if not pin.isdigit():
        raise ValidationError("PIN must contain digits only")
    if len(pin) < config.MIN_PIN_LENGTH:
        raise ValidationError(f"PIN must be at least {config.MIN_PIN_LENGTH} digits")
    return pin


def hash_pin(pin: str, iterations: int = config.PIN_HASH_ITERATIONS) -> str:
    """
    Hash a PIN with a random salt.

    Returns:
        "pbkdf2_sha256$<iterations>$<salt>$<digest>" (salt/digest base64).
    """
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), salt, iterations)
    return "$".join([
        _HASH_SCHEME,
        str(iterations),
        base64.b64encode(salt).decode("ascii"),
        base64.b64encode(digest).decode("ascii"),
    ])


def verify_pin(stored_hash: Optional[str], pin: str) -> bool:
    """
    Compare a candidate PIN against a stored hash in constant time.

    Malformed or missing hashes never verify.
    """
    if not stored_hash or pin is None:
        return False
    try:
        scheme, iterations, salt_b64, digest_b64 = stored_hash.split("$")
        if scheme != _HASH_SCHEME:
            return False
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(digest_b64)
        candidate = hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), salt, int(iterations))
    except (ValueError, TypeError) as e:
        logger.warning(f"Stored PIN hash is malformed: {e}")
        return False
    return hmac.compare_digest(candidate, expected)


# ----------------------------------------------------------------------
# Session and gate
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class AuthorizationSession:
    """Proof of a recent PIN entry, valid strictly before expires_at."""

    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class ActionDecision(Enum):
    """Outcome of AuthorizationGate.begin_action."""

    RUN_IMMEDIATELY = "run_immediately"
    NEEDS_CHALLENGE = "needs_challenge"


class AuthorizationGate:
    """
    Holds the single process-wide authorization session and the killswitch.

    Verifying the PIN replaces any existing session; it never stacks.
    """

    def __init__(
        self,
        state: EngineState,
        events: EventRecorder,
        pin_hash_provider: Callable[[], Optional[str]],
        clock: Callable[[], datetime] = datetime.now,
        session_duration: Optional[timedelta] = None,
    ):
        """
        Initialize the gate.

        Args:
            state: Engine state disarmed by the killswitch.
            events: Recorder receiving the killswitch audit entry.
            pin_hash_provider: Returns the currently stored PIN hash (or None).
            clock: Source of the current time.
            session_duration: Session lifetime (defaults to config.AUTH_SESSION_MINUTES).
        """
        self.state = state
        self.events = events
        self._pin_hash_provider = pin_hash_provider
        self._clock = clock
        self.session_duration = session_duration or timedelta(minutes=config.AUTH_SESSION_MINUTES)
        self._session: Optional[AuthorizationSession] = None
        self._lock = threading.Lock()

        # Called after the killswitch has disarmed the state (set by the engine)
        self.on_override: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[AuthorizationSession]:
        """The current session if still valid, else None."""
        session = self._session
        if session is not None and session.is_valid(self._clock()):
            return session
        return None

    def is_authenticated(self) -> bool:
        return self.session is not None

    def begin_action(self, requires_auth: bool) -> ActionDecision:
        """
        Decide whether an action may run now or needs a PIN challenge first.

        Args:
            requires_auth: Whether the action is destructive.
        """
        if not requires_auth or self.is_authenticated():
            return ActionDecision.RUN_IMMEDIATELY
        return ActionDecision.NEEDS_CHALLENGE

    def require_session(self, action: str = "this action") -> None:
        """
        Raise unless a valid session exists.

        Raises:
            AuthorizationFailure: No valid session.
        """
        if not self.is_authenticated():
            raise AuthorizationFailure(f"PIN required for {action}")

    def verify(self, candidate_pin: str) -> bool:
        """
        Check a PIN and open a new session on success.

        A wrong PIN returns False and leaves any existing session as it
        was; callers should offer a retry.
        """
        if not verify_pin(self._pin_hash_provider(), candidate_pin):
            logger.warning("PIN verification failed")
            return False

        expires_at = self._clock() + self.session_duration
        with self._lock:
            self._session = AuthorizationSession(expires_at=expires_at)
        logger.info(f"PIN verified - authorized until {expires_at:%H:%M:%S}")
        return True

    def invalidate(self) -> None:
        """End the current session, if any."""
        with self._lock:
            had_session = self._session is not None
            self._session = None
        if had_session:
            logger.info("Authorization session cleared")

    # ------------------------------------------------------------------
    # Killswitch
    # ------------------------------------------------------------------

    def emergency_override(self) -> None:
        """
        Disable all enforcement immediately, without a PIN.

        Always disarms both app and website enforcement and always appends
        exactly one killswitch event, whatever the prior state.
        """
        self.state.disarm(include_website=True)
        logger.warning("KILLSWITCH activated - all blocking disabled")
        self.events.append(
            config.EVENT_KILLSWITCH,
            "System",
            "Killswitch activated - all blocking disabled",
            timestamp=self._clock(),
        )
        if self.on_override:
            try:
                self.on_override()
            except Exception as e:
                logger.error(f"Killswitch follow-up failed: {e}")
