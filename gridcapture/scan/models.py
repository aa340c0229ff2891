from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

ScanType = Literal["drawings", "rfis", "commitments"]


class ScanStatus(str, Enum):
    IDLE = "idle"
    STARTED = "started"
    EXPANDING = "expanding"
    SCANNING = "scanning"
    STABILIZING = "stabilizing"
    COMPLETE = "complete"
    TIMEOUT = "timeout"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True)
class ScrollMetrics:
    scroll_top: float
    scroll_height: float
    client_height: float

    @property
    def fraction(self) -> float:
        return self.scroll_top / max(1.0, self.scroll_height - self.client_height)

    def at_end(self, margin: float) -> bool:
        return self.client_height + self.scroll_top >= self.scroll_height - margin


@dataclass(frozen=True)
class ProgressEvent:
    """One SCAN_PROGRESS update; ``session_id`` lets consumers drop stale ones."""

    status: ScanStatus
    scan_type: str
    percent: int
    session_id: str
    message: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status": self.status.value,
            "scanType": self.scan_type,
            "percent": self.percent,
            "sessionId": self.session_id,
        }
        if self.message is not None:
            payload["message"] = self.message
        return payload


@dataclass(frozen=True)
class ScanResult:
    success: bool
    message: str
    status: ScanStatus | None = None
    session_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}
