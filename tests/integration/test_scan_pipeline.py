"""Scan commands and progress carried over the relay bridge end to end."""

import asyncio
from unittest.mock import MagicMock

from gridcapture.capture.interceptor import CaptureInterceptor
from gridcapture.config.settings import Settings
from gridcapture.relay.bridge import RelayBridge
from gridcapture.relay.forwarder import progress_publisher
from gridcapture.relay.handler import CommandHandler
from gridcapture.relay.messages import SCAN_PROGRESS, STOP_SCAN, TRIGGER_SCAN, Message
from gridcapture.scan.orchestrator import ScanOrchestrator
from tests.fakes import FakeScanSurface


def _make_pipeline(
    surface: FakeScanSurface, settings: Settings
) -> tuple[RelayBridge, list[Message], list[Message]]:
    bridge = RelayBridge()
    progress: list[Message] = []
    replies: list[Message] = []
    bridge.subscribe(SCAN_PROGRESS, progress.append)
    bridge.subscribe("SCAN_RESULT", replies.append)
    orchestrator = ScanOrchestrator(surface, settings, progress_publisher(bridge))
    interceptor = CaptureInterceptor(settings.host_domain, page_url=surface.url)
    CommandHandler(orchestrator, MagicMock(), interceptor, bridge, settings.host_domain).attach()
    return bridge, progress, replies


class TestScanOverRelay:
    def test_scan_reports_progress_and_result(
        self, fast_settings: Settings, fake_surface: FakeScanSurface
    ) -> None:
        fake_surface.group_rows = ["row-a", "row-b"]
        fake_surface.expanders = {"row-a": "exp-a", "row-b": "exp-b"}
        bridge, progress, replies = _make_pipeline(fake_surface, fast_settings)

        async def run() -> None:
            bridge.send(
                Message(type=TRIGGER_SCAN, payload={"scanType": "drawings", "replyTo": "SCAN_RESULT"})
            )
            await bridge.drain()

        asyncio.run(run())

        assert replies[0].payload == {"success": True, "message": "Scan complete"}
        percents = [m.payload["percent"] for m in progress]
        assert percents == sorted(percents)
        assert progress[-1].payload["status"] == "complete"
        assert len({m.payload["sessionId"] for m in progress}) == 1
        assert fake_surface.clicks == ["exp-a", "exp-b"]

    def test_stop_command_from_consumer(self, fake_surface: FakeScanSurface) -> None:
        settings = Settings(scan_tick_seconds=0.001, scan_timeout_seconds=5.0)
        fake_surface.url = "https://app.procore.com/562/project/rfis"
        fake_surface.scroll_height = 10.0**9
        bridge, progress, replies = _make_pipeline(fake_surface, settings)

        async def run() -> None:
            bridge.send(
                Message(type=TRIGGER_SCAN, payload={"scanType": "rfis", "replyTo": "SCAN_RESULT"})
            )
            while len(fake_surface.scrolls) < 3:
                await asyncio.sleep(0.001)
            bridge.send(Message(type=STOP_SCAN))
            await bridge.drain()

        asyncio.run(run())

        assert replies[0].payload == {"success": True, "message": "Scan stopped"}
        assert all(m.payload["status"] != "complete" for m in progress)

    def test_guarded_scan_replies_without_progress(self, fast_settings: Settings) -> None:
        surface = FakeScanSurface(url="https://app.procore.com/562/project/home")
        bridge, progress, replies = _make_pipeline(surface, fast_settings)

        async def run() -> None:
            bridge.send(
                Message(type=TRIGGER_SCAN, payload={"scanType": "drawings", "replyTo": "SCAN_RESULT"})
            )
            await bridge.drain()

        asyncio.run(run())

        assert replies[0].payload == {
            "success": False,
            "message": "Navigate to the Drawings page first",
        }
        assert progress == []
