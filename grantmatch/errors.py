"""
Error taxonomy for the matching engine.

Callers distinguish "matching unavailable" (CatalogUnavailable,
NoSnapshotLoaded) from a rejected request (InvalidProfile, InvalidOptions)
and from an empty result, which is not an error at all.
"""


class GrantMatchError(Exception):
    """Base class for all engine errors."""
    pass


class CatalogUnavailable(GrantMatchError):
    """Raised when the catalog store cannot be reached during a load."""

    def __init__(self, message: str, transient: bool = True):
        super().__init__(message)
        self.transient = transient


class MalformedRecord(GrantMatchError):
    """Raised when a single catalog entry fails validation."""

    def __init__(self, message: str, grant_id=None, errors=None):
        super().__init__(message)
        self.grant_id = grant_id
        self.errors = list(errors or [])


class InvalidProfile(GrantMatchError):
    """Raised when a farm profile violates its enum or range invariants."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class InvalidOptions(GrantMatchError):
    """Raised when limit or min_score fall outside their allowed range."""
    pass


class NoSnapshotLoaded(GrantMatchError):
    """Raised when matching is requested before any successful catalog load."""
    pass
