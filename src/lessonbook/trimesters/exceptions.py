"""Custom exceptions for trimester routing."""


class TrimesterError(Exception):
    """Base exception for trimester routing errors."""


class NoActivePeriodError(TrimesterError):
    """No period in the program calendar has started yet."""


class InvalidTrimesterError(TrimesterError):
    """Trimester name is not fall, winter or spring."""
