"""Drives the host page so lazily loaded grid rows are requested and captured.

Session lifecycle::

    Idle -> Started -> (Expanding, drawings only) -> Scanning <-> Stabilizing
         -> Complete | Timeout | Stopped -> Idle
"""

import asyncio
import math
from collections.abc import Callable
from typing import ClassVar

from gridcapture.config.settings import Settings
from gridcapture.logging.logger import Log
from gridcapture.scan.base import BaseScanSurface, ScrollTarget
from gridcapture.scan.exceptions import ScanGuardRejected
from gridcapture.scan.models import ProgressEvent, ScanResult, ScanStatus
from gridcapture.scan.session import ScanSession

ProgressSink = Callable[[ProgressEvent], None]

_SCROLL_PHASE_START = 15
_EXPAND_BAND_START = 2
_EXPAND_BAND_WIDTH = 12


class ScanOrchestrator:
    """Runs at most one expand-and-scroll scan at a time on one surface."""

    SCROLL_CONTAINER_SELECTORS: ClassVar[tuple[str, ...]] = (
        ".ag-body-viewport",
        ".main-content",
        "#main_content",
        "body",
    )
    PAGE_GUARDS: ClassVar[dict[str, tuple[tuple[str, ...], str]]] = {
        "drawings": (("/drawing_log", "/drawings"), "Navigate to the Drawings page first"),
        "rfis": (("/rfis",), "Navigate to the RFIs page first"),
        "commitments": (
            ("/commitments", "/contracts"),
            "Navigate to the Commitments page first",
        ),
    }

    def __init__(
        self,
        surface: BaseScanSurface,
        settings: Settings,
        on_progress: ProgressSink | None = None,
    ) -> None:
        self._surface = surface
        self._settings = settings
        self._on_progress = on_progress
        self._session = ScanSession()

    @property
    def session(self) -> ScanSession:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session.is_active

    async def start(self, scan_type: str) -> ScanResult:
        """Run a scan to completion, timeout or stop.

        Never raises; a rejected guard returns ``success=False`` without
        touching the page.
        """
        try:
            self._guard(scan_type)
        except ScanGuardRejected as exc:
            Log.info(f"Scan rejected: {exc}", scan_type=scan_type)
            return ScanResult(success=False, message=str(exc))

        session = self._session
        done = session.begin(scan_type)
        token = session.session_id
        loop = asyncio.get_running_loop()
        session.deadline = loop.call_later(
            self._settings.scan_timeout_seconds, self._on_timeout, token
        )
        Log.info(f"Scan started: {scan_type}", session=token)
        self._emit(session, ScanStatus.STARTED, 0)

        try:
            if scan_type == "drawings":
                await self._expand_groups(session, token)
            if session.is_current(token):
                await self._start_scrolling(session, token)
        except Exception as exc:
            Log.error(f"Scan failed: {exc}", session=token)
            self._fail(session, token, exc)

        result = await done
        Log.info(f"Scan finished: {result.message}", session=token)
        return result

    def stop(self) -> ScanResult:
        """Cancel the active scan, if any. Idempotent; always succeeds."""
        session = self._session
        if not session.is_active or session.finished:
            return ScanResult(success=True, message="No scan in progress")
        token = session.session_id
        session.finish(ScanStatus.STOPPED)
        session.resolve(
            ScanResult(
                success=True,
                message="Scan stopped",
                status=ScanStatus.STOPPED,
                session_id=token,
            )
        )
        session.reset()
        Log.info("Scan stopped", session=token)
        return ScanResult(success=True, message="Scan stopped", session_id=token)

    def _guard(self, scan_type: str) -> None:
        if self._session.is_active:
            raise ScanGuardRejected("Scan already in progress")
        guard = self.PAGE_GUARDS.get(scan_type)
        if guard is None:
            raise ScanGuardRejected(
                f"Unknown scan type '{scan_type}'. Choose from: {list(self.PAGE_GUARDS)}"
            )
        needles, message = guard
        current_url = self._surface.current_url().lower()
        if not any(needle in current_url for needle in needles):
            raise ScanGuardRejected(message)

    async def _pause(self, session: ScanSession, seconds: float) -> None:
        """Sleep, waking early if the session ends."""
        if session.done is not None:
            await asyncio.wait({session.done}, timeout=seconds)

    async def _expand_groups(self, session: ScanSession, token: str) -> None:
        """Expand every group so the grid requests each group's rows."""
        session.status = ScanStatus.EXPANDING
        self._emit(session, ScanStatus.EXPANDING, _EXPAND_BAND_START, "Expanding disciplines...")
        surface = self._surface
        rows = await surface.find_group_rows()

        if rows:
            Log.info(f"Found {len(rows)} group rows to expand", session=token)
            total = len(rows)
            for i, row in enumerate(rows):
                expander = await surface.find_row_expander(row)
                if not session.is_current(token):
                    return
                if expander is not None:
                    await surface.click(expander)
                    await self._pause(session, self._settings.expand_click_delay_seconds)
                    if not session.is_current(token):
                        return
                percent = _EXPAND_BAND_START + math.floor((i + 1) / total * _EXPAND_BAND_WIDTH)
                self._emit(
                    session,
                    ScanStatus.EXPANDING,
                    percent,
                    f"Expanding disciplines... ({i + 1}/{total})",
                )
            await self._pause(session, self._settings.expand_settle_seconds)
        else:
            toggle = await surface.find_expand_all_toggle()
            if toggle is not None:
                label = (await surface.label_of(toggle)).lower()
                if "close" in label or "collapse" in label:
                    Log.info("Collapsing all groups first", session=token)
                    await surface.click(toggle)
                    await self._pause(session, self._settings.expand_settle_seconds)
                    if not session.is_current(token):
                        return
                Log.info("Expanding all groups", session=token)
                await surface.click(toggle)
                await self._pause(session, self._settings.expand_all_settle_seconds)

        if session.is_current(token):
            self._emit(
                session,
                ScanStatus.SCANNING,
                _SCROLL_PHASE_START,
                "Scrolling to load all drawings...",
            )

    async def _start_scrolling(self, session: ScanSession, token: str) -> None:
        target = await self._surface.find_scroll_container(
            self.SCROLL_CONTAINER_SELECTORS, self._settings.scan_min_overflow
        )
        signal = await self._surface.watch_rows(target, session.note_change)
        if not session.is_current(token):
            signal.disconnect()
            return
        session.signal = signal
        session.status = ScanStatus.SCANNING
        session.ticker = asyncio.get_running_loop().create_task(
            self._tick_loop(session, token, target)
        )

    async def _tick_loop(self, session: ScanSession, token: str, target: ScrollTarget) -> None:
        try:
            while session.is_current(token):
                await asyncio.sleep(self._settings.scan_tick_seconds)
                if not session.is_current(token):
                    return
                await self._tick(session, token, target)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            Log.error(f"Scan tick failed: {exc}", session=token)
            self._fail(session, token, exc)

    async def _tick(self, session: ScanSession, token: str, target: ScrollTarget) -> None:
        surface = self._surface
        await surface.scroll_to(target, session.scroll_position)
        session.scroll_position += self._settings.scan_scroll_step
        metrics = await surface.scroll_metrics(target)
        if not session.is_current(token):
            return

        percent = min(99, _SCROLL_PHASE_START + math.floor(metrics.fraction * 85))
        if not metrics.at_end(self._settings.scan_bottom_margin):
            self._emit(session, ScanStatus.SCANNING, percent)
            return

        session.status = ScanStatus.STABILIZING
        session.stable_cycles += 1
        self._emit(session, ScanStatus.STABILIZING, percent)
        if session.stable_cycles >= self._settings.scan_stable_threshold:
            await self._complete(session, token, target)

    async def _complete(self, session: ScanSession, token: str, target: ScrollTarget) -> None:
        if not session.finish(ScanStatus.COMPLETE):
            return
        try:
            await self._surface.scroll_to(target, 0)
        except Exception as exc:
            Log.warning(f"Could not scroll back to top: {exc}", session=token)
        self._emit(session, ScanStatus.COMPLETE, 100)
        session.resolve(
            ScanResult(
                success=True,
                message="Scan complete",
                status=ScanStatus.COMPLETE,
                session_id=token,
            )
        )
        session.reset()

    def _on_timeout(self, token: str) -> None:
        session = self._session
        if not session.is_current(token):
            return
        session.finish(ScanStatus.TIMEOUT)
        Log.warning("Scan timed out, returning partial capture", session=token)
        self._emit(session, ScanStatus.TIMEOUT, 100)
        session.resolve(
            ScanResult(
                success=True,
                message="Scan complete (timeout)",
                status=ScanStatus.TIMEOUT,
                session_id=token,
            )
        )
        session.reset()

    def _fail(self, session: ScanSession, token: str, exc: Exception) -> None:
        if session.session_id != token or not session.finish(ScanStatus.ERROR):
            return
        self._emit(session, ScanStatus.ERROR, session.last_percent, str(exc))
        session.resolve(
            ScanResult(
                success=False,
                message=f"Scan failed: {exc}",
                status=ScanStatus.ERROR,
                session_id=token,
            )
        )
        session.reset()

    def _emit(
        self,
        session: ScanSession,
        status: ScanStatus,
        percent: int,
        message: str | None = None,
    ) -> None:
        if self._on_progress is None:
            return
        event = ProgressEvent(
            status=status,
            scan_type=session.scan_type or "",
            percent=session.clamp_percent(percent),
            session_id=session.session_id,
            message=message,
        )
        try:
            self._on_progress(event)
        except Exception as exc:
            Log.error(f"Progress sink failed: {exc}")
