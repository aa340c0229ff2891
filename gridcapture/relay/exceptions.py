class RelayError(Exception):
    """Base exception for relay errors."""


class UnknownActionError(RelayError):
    """Raised when a command names an action no handler knows."""
