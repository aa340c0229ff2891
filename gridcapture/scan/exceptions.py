class ScanError(Exception):
    """Base exception for all scan-related errors."""


class ScanGuardRejected(ScanError):
    """Raised when a scan cannot start: wrong page or a session already active."""
