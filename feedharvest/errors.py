"""error taxonomy for the harvester.

Fatal errors derive from HarvestError and reach the caller. The other two
are raised and absorbed inside extraction.
"""


class HarvestError(RuntimeError):
    """Raised when a harvest cannot complete."""


class NavigationFailure(HarvestError):
    """Raised when the page fails to load or a bounded wait expires."""


class AuthError(HarvestError):
    """Raised when the stored credential bundle cannot be used."""


class AuthMissing(AuthError):
    """Raised when no credential bundle exists or it cannot be read."""


class AuthExpired(AuthError):
    """Raised when the credential bundle is older than the allowed age."""


class TransientExtractionFailure(ValueError):
    """Raised by a field reader when markup is present but malformed."""


class NoMatchFound(LookupError):
    """Raised when every pattern of a locator cascade misses."""
