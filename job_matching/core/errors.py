"""Exception types raised by the matching engine."""


class InvalidStatusError(ValueError):
    """Raised when a status value is not one of the known match statuses."""
