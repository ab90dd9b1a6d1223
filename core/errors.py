"""Exception types shared across Holdfast."""


class HoldfastError(Exception):
    """Base class for all Holdfast errors."""


class ValidationError(HoldfastError):
    """Malformed rule or settings fields. Nothing is applied."""


class AuthorizationFailure(HoldfastError):
    """A destructive action was attempted without a valid PIN session."""


class EnforcementIOError(HoldfastError):
    """Listing or killing processes failed."""


class PersistenceError(HoldfastError):
    """Reading or writing persisted state failed."""
