import asyncio
from unittest.mock import MagicMock

from gridcapture.scan.models import ScanResult, ScanStatus
from gridcapture.scan.session import ScanSession


class TestClampPercent:
    def test_never_decreases(self) -> None:
        session = ScanSession()
        assert session.clamp_percent(40) == 40
        assert session.clamp_percent(20) == 40

    def test_bounded(self) -> None:
        session = ScanSession()
        assert session.clamp_percent(-5) == 0
        assert session.clamp_percent(250) == 100


class TestNoteChange:
    def test_resets_stability(self) -> None:
        session = ScanSession(status=ScanStatus.STABILIZING, stable_cycles=4)

        session.note_change()

        assert session.stable_cycles == 0
        assert session.status is ScanStatus.SCANNING


class TestLifecycle:
    def test_begin_assigns_fresh_id(self) -> None:
        async def run() -> tuple[str, str]:
            session = ScanSession()
            session.begin("drawings")
            first = session.session_id
            session.finish(ScanStatus.COMPLETE)
            session.reset()
            session.begin("drawings")
            return first, session.session_id

        first, second = asyncio.run(run())

        assert first != second

    def test_finish_releases_resources_once(self) -> None:
        signal = MagicMock()
        deadline = MagicMock()
        session = ScanSession(status=ScanStatus.SCANNING, signal=signal, deadline=deadline)

        assert session.finish(ScanStatus.STOPPED)
        assert not session.finish(ScanStatus.STOPPED)

        signal.disconnect.assert_called_once()
        deadline.cancel.assert_called_once()
        assert session.signal is None

    def test_is_current_false_after_finish(self) -> None:
        session = ScanSession(status=ScanStatus.SCANNING, session_id="abc")
        assert session.is_current("abc")

        session.finish(ScanStatus.COMPLETE)

        assert not session.is_current("abc")

    def test_resolve_only_once(self) -> None:
        async def run() -> ScanResult:
            session = ScanSession()
            done = session.begin("rfis")
            session.resolve(ScanResult(success=True, message="first"))
            session.resolve(ScanResult(success=True, message="second"))
            return await done

        assert asyncio.run(run()).message == "first"

    def test_reset_returns_to_idle(self) -> None:
        session = ScanSession(status=ScanStatus.COMPLETE, scan_type="rfis", scroll_position=800)

        session.reset()

        assert not session.is_active
        assert session.scan_type is None
        assert session.scroll_position == 0
