import asyncio
import uuid
from dataclasses import dataclass, field

from gridcapture.scan.base import ChangeSignal
from gridcapture.scan.models import ScanResult, ScanStatus


@dataclass
class ScanSession:
    """Mutable state of the one scan a page may run at a time.

    Owned by the orchestrator; every timer, task and signal the scan creates
    hangs off this object so stopping it releases all of them.
    """

    status: ScanStatus = ScanStatus.IDLE
    scan_type: str | None = None
    stable_cycles: int = 0
    scroll_position: int = 0
    last_percent: int = 0
    session_id: str = ""
    started_at: float = 0.0
    done: asyncio.Future[ScanResult] | None = None
    ticker: asyncio.Task[None] | None = None
    deadline: asyncio.TimerHandle | None = None
    signal: ChangeSignal | None = None
    _finished: bool = field(default=False, repr=False)

    @property
    def is_active(self) -> bool:
        return self.status is not ScanStatus.IDLE

    @property
    def finished(self) -> bool:
        return self._finished

    def is_current(self, session_id: str) -> bool:
        """True while the scan identified by ``session_id`` is still running."""
        return self.session_id == session_id and not self._finished

    def begin(self, scan_type: str) -> "asyncio.Future[ScanResult]":
        """Enter Started with a fresh id; returns the future the scan resolves."""
        loop = asyncio.get_running_loop()
        self.status = ScanStatus.STARTED
        self.scan_type = scan_type
        self.stable_cycles = 0
        self.scroll_position = 0
        self.last_percent = 0
        self.session_id = uuid.uuid4().hex[:12]
        self.started_at = loop.time()
        self.done = loop.create_future()
        self._finished = False
        return self.done

    def note_change(self) -> None:
        """New rows rendered: the end of the list has moved."""
        self.stable_cycles = 0
        if self.status is ScanStatus.STABILIZING:
            self.status = ScanStatus.SCANNING

    def clamp_percent(self, percent: int) -> int:
        """Bound to [0, 100] and never below a percent already reported."""
        self.last_percent = max(self.last_percent, min(100, max(0, percent)))
        return self.last_percent

    def finish(self, status: ScanStatus) -> bool:
        """Mark the session terminal and release its timer, task and signal.

        Returns False if the session had already finished.
        """
        if self._finished:
            return False
        self._finished = True
        self.status = status
        if self.deadline is not None:
            self.deadline.cancel()
            self.deadline = None
        if self.ticker is not None and self.ticker is not asyncio.current_task():
            self.ticker.cancel()
        self.ticker = None
        if self.signal is not None:
            self.signal.disconnect()
            self.signal = None
        return True

    def resolve(self, result: ScanResult) -> None:
        if self.done is not None and not self.done.done():
            self.done.set_result(result)

    def reset(self) -> None:
        """Return to Idle; the session can then be begun again."""
        self.status = ScanStatus.IDLE
        self.scan_type = None
        self.stable_cycles = 0
        self.scroll_position = 0
