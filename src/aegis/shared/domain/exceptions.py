"""
Domain exceptions for Aegis.

All application errors inherit from AegisError. Components convert input and
environment failures into report entries; only configuration errors detected
at construction time are raised to the caller.
"""


class AegisError(Exception):
    """Base class for all Aegis exceptions."""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(AegisError):
    """Raised when a catalog or handler table is invalid (e.g. an entry without a handler)."""

    pass


class RepairError(AegisError):
    """Raised when a repair action cannot be applied to an artifact."""

    pass


class LockTimeoutError(AegisError):
    """Raised when the repository write lock cannot be acquired in time."""

    pass
