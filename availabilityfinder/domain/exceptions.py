"""
Domain-specific exception hierarchy for the availability finder.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class ValidationError(AvailabilityError):
    """Raised when query parameters are missing or malformed."""


class UpstreamDataError(AvailabilityError):
    """Raised when rules or bookings cannot be read from the external store."""
