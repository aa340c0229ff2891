from gridcapture.scan.base import BaseScanSurface, ChangeSignal
from gridcapture.scan.models import ProgressEvent, ScanResult, ScanStatus
from gridcapture.scan.orchestrator import ScanOrchestrator

__all__ = [
    "BaseScanSurface",
    "ChangeSignal",
    "ProgressEvent",
    "ScanOrchestrator",
    "ScanResult",
    "ScanStatus",
]
