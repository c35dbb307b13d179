"""
Exceptions raised by workout generation and its input layer.
"""


class PaceForgeError(Exception):
    """Base class for all paceforge errors."""


class EmptyDomainError(PaceForgeError, ValueError):
    """Raised when a device offers no speeds to quantize against."""


class InvalidOptionError(PaceForgeError, ValueError):
    """Raised for malformed caller input (numbers, unit tokens, modes)."""


class ProfileError(PaceForgeError):
    """Raised when a device profile file cannot be read or validated."""
