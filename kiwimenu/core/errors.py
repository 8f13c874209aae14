class KiwiMenuError(Exception):
    """Base class for every error raised inside the user switcher."""


class ServiceUnavailable(KiwiMenuError):
    """AccountsService or logind is not reachable, or not loaded yet."""


class TransportError(KiwiMenuError):
    """A specific D-Bus call failed."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        message = f"D-Bus call {operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DataAnomaly(KiwiMenuError):
    """A malformed record: unparsable uid, empty username, not loaded."""
