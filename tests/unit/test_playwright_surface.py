import asyncio
from unittest.mock import AsyncMock, MagicMock

from gridcapture.scan.playwright_surface import PlaywrightScanSurface


def _make_page(url: str = "https://app.procore.com/562/project/drawing_log") -> MagicMock:
    page = MagicMock()
    page.url = url
    page.evaluate = AsyncMock(return_value=None)
    page.expose_function = AsyncMock()
    page.query_selector_all = AsyncMock(return_value=[])
    page.query_selector = AsyncMock(return_value=None)
    return page


class TestQueries:
    def test_current_url(self) -> None:
        surface = PlaywrightScanSurface(_make_page("https://app.procore.com/562/project/rfis"))
        assert surface.current_url() == "https://app.procore.com/562/project/rfis"

    def test_group_rows_selector(self) -> None:
        page = _make_page()
        page.query_selector_all.return_value = ["row"]
        surface = PlaywrightScanSurface(page)

        rows = asyncio.run(surface.find_group_rows())

        assert rows == ["row"]
        assert "ag-grid-row-group" in page.query_selector_all.call_args.args[0]

    def test_label_of_missing_attribute(self) -> None:
        element = MagicMock()
        element.get_attribute = AsyncMock(return_value=None)
        surface = PlaywrightScanSurface(_make_page())

        assert asyncio.run(surface.label_of(element)) == ""

    def test_click_uses_dom_click(self) -> None:
        element = MagicMock()
        element.evaluate = AsyncMock()
        surface = PlaywrightScanSurface(_make_page())

        asyncio.run(surface.click(element))

        element.evaluate.assert_awaited_once_with("(el) => el.click()")


class TestScrolling:
    def test_scroll_container_passes_candidates(self) -> None:
        page = _make_page()
        page.evaluate.return_value = ".ag-body-viewport"
        surface = PlaywrightScanSurface(page)

        target = asyncio.run(surface.find_scroll_container([".ag-body-viewport", "body"], 100))

        assert target == ".ag-body-viewport"
        assert page.evaluate.call_args.args[1] == [[".ag-body-viewport", "body"], 100]

    def test_metrics_converted(self) -> None:
        page = _make_page()
        page.evaluate.return_value = {"top": 200, "height": 3000, "client": 900}
        surface = PlaywrightScanSurface(page)

        metrics = asyncio.run(surface.scroll_metrics(None))

        assert metrics.scroll_top == 200.0
        assert metrics.scroll_height == 3000.0
        assert metrics.client_height == 900.0


class TestWatchRows:
    def test_binding_exposed_once(self) -> None:
        page = _make_page()
        page.evaluate.return_value = True
        surface = PlaywrightScanSurface(page)

        async def run() -> None:
            first = await surface.watch_rows(None, lambda: None)
            first.disconnect()
            await surface.watch_rows(None, lambda: None)

        asyncio.run(run())

        page.expose_function.assert_awaited_once()

    def test_change_forwarded_until_disconnect(self) -> None:
        page = _make_page()
        page.evaluate.return_value = True
        surface = PlaywrightScanSurface(page)
        changes: list[int] = []

        async def run() -> None:
            signal = await surface.watch_rows(".ag-body-viewport", lambda: changes.append(1))
            binding = page.expose_function.call_args.args[1]
            binding()
            signal.disconnect()
            signal.disconnect()
            binding()
            await asyncio.sleep(0)

        asyncio.run(run())

        assert changes == [1]
