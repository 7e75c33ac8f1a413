"""
Exception types for SubCategory hierarchy resolution.

CapabilityAbsent and TransientLookupFailure raised by the primary parent
lookup are recovered inside the resolver. Everything else reaches the caller.
"""

ROUTE_MISSING_PHRASES = ("route not found", "not found")


class HierarchyError(Exception):
    """Base class for all hierarchy errors."""


class ConfigurationError(HierarchyError):
    """API connection settings are missing or invalid."""


class InvalidHierarchy(HierarchyError):
    """A write would break the depth, category or sibling invariants."""


class ApiError(HierarchyError):
    """An admin API call failed."""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def is_route_missing(self):
        """True when the backend signals that the route does not exist."""
        if self.status_code == 404:
            return True
        # Message text is a best-effort secondary signal only
        text = self.message or ""
        if isinstance(self.payload, dict):
            text = f"{text} {self.payload.get('message') or ''}"
        text = text.lower()
        return any(phrase in text for phrase in ROUTE_MISSING_PHRASES)


class CapabilityAbsent(ApiError):
    """The optional available-parents route is not deployed."""


class TransientLookupFailure(ApiError):
    """Network, timeout or server error while reading from the API."""


class ConstraintViolation(ApiError):
    """Uniqueness or scoping violation reported on write."""

    def __init__(self, message, scope, status_code=None, payload=None):
        super().__init__(message, status_code=status_code, payload=payload)
        self.scope = scope
