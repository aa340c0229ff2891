import asyncio
from collections.abc import Callable, Sequence
from typing import Any

from playwright.async_api import ElementHandle, Page

from gridcapture.logging.logger import Log
from gridcapture.scan.base import BaseScanSurface, ChangeSignal, ScrollTarget
from gridcapture.scan.models import ScrollMetrics

_ROWS_CHANGED_BINDING = "__gridcaptureRowsChanged"

_GROUP_ROW_SELECTOR = '[data-testid="ag-grid-row-group"]'
_ROW_EXPANDER_SELECTOR = '.ag-group-contracted, .ag-icon-tree-closed, [aria-label*="expand"]'
_EXPAND_ALL_SELECTOR = '.expand-button, [aria-label*="Expand All"], [aria-label*="expand all"]'

_FIND_CONTAINER_JS = """
([candidates, minOverflow]) => {
    for (const sel of candidates) {
        const el = document.querySelector(sel);
        if (el && el.scrollHeight > el.clientHeight + minOverflow) return sel;
    }
    return null;
}
"""

_SCROLL_TO_JS = """
([sel, position]) => {
    const el = sel ? document.querySelector(sel) : null;
    if (el) { el.scrollTop = position; } else { window.scrollTo(0, position); }
}
"""

_METRICS_JS = """
(sel) => {
    const el = sel ? document.querySelector(sel) : null;
    if (el) {
        return {top: el.scrollTop, height: el.scrollHeight, client: el.clientHeight};
    }
    return {
        top: window.scrollY,
        height: document.body.scrollHeight,
        client: window.innerHeight,
    };
}
"""

_OBSERVE_JS = """
([sel, binding]) => {
    const viewport = document.querySelector('.ag-body-viewport')
        || document.querySelector('.ag-center-cols-viewport')
        || (sel ? document.querySelector(sel) : null);
    if (!viewport) return false;
    if (window.__gridcaptureObserver) window.__gridcaptureObserver.disconnect();
    const observer = new MutationObserver((mutations) => {
        if (mutations.some((m) => m.addedNodes.length > 0)) window[binding]();
    });
    observer.observe(viewport, {childList: true, subtree: true});
    window.__gridcaptureObserver = observer;
    return true;
}
"""

_DISCONNECT_JS = """
() => {
    if (window.__gridcaptureObserver) {
        window.__gridcaptureObserver.disconnect();
        window.__gridcaptureObserver = null;
    }
}
"""


class _PlaywrightRowSignal(ChangeSignal):
    """Row watcher backed by an in-page MutationObserver."""

    def __init__(self, surface: "PlaywrightScanSurface") -> None:
        self._surface = surface
        self._connected = True

    def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self._surface.stop_watching()


class PlaywrightScanSurface(BaseScanSurface):
    """Scan surface over a live Playwright page."""

    def __init__(self, page: Page) -> None:
        self.page = page
        self._on_rows_changed: Callable[[], None] | None = None
        self._binding_ready = False
        self._background: set[asyncio.Task[Any]] = set()

    def current_url(self) -> str:
        return self.page.url

    async def find_group_rows(self) -> list[Any]:
        return list(await self.page.query_selector_all(_GROUP_ROW_SELECTOR))

    async def find_row_expander(self, row: ElementHandle) -> ElementHandle | None:
        return await row.query_selector(_ROW_EXPANDER_SELECTOR)

    async def find_expand_all_toggle(self) -> ElementHandle | None:
        return await self.page.query_selector(_EXPAND_ALL_SELECTOR)

    async def label_of(self, element: ElementHandle) -> str:
        return await element.get_attribute("aria-label") or ""

    async def click(self, element: ElementHandle) -> None:
        # A DOM click, so hidden or animating grid icons do not block on actionability.
        await element.evaluate("(el) => el.click()")

    async def find_scroll_container(
        self, candidates: Sequence[str], min_overflow: int
    ) -> ScrollTarget:
        selector = await self.page.evaluate(_FIND_CONTAINER_JS, [list(candidates), min_overflow])
        Log.debug(f"Scroll container: {selector or 'window'}")
        return selector

    async def scroll_to(self, target: ScrollTarget, position: int) -> None:
        await self.page.evaluate(_SCROLL_TO_JS, [target, position])

    async def scroll_metrics(self, target: ScrollTarget) -> ScrollMetrics:
        raw = await self.page.evaluate(_METRICS_JS, target)
        return ScrollMetrics(
            scroll_top=float(raw["top"]),
            scroll_height=float(raw["height"]),
            client_height=float(raw["client"]),
        )

    async def watch_rows(
        self, target: ScrollTarget, on_change: Callable[[], None]
    ) -> ChangeSignal:
        if not self._binding_ready:
            await self.page.expose_function(_ROWS_CHANGED_BINDING, self._rows_changed)
            self._binding_ready = True
        self._on_rows_changed = on_change
        attached = await self.page.evaluate(_OBSERVE_JS, [target, _ROWS_CHANGED_BINDING])
        if not attached:
            Log.warning("No grid viewport found, row changes will not be observed")
        return _PlaywrightRowSignal(self)

    def stop_watching(self) -> None:
        self._on_rows_changed = None
        self._schedule(self.page.evaluate(_DISCONNECT_JS))

    def _rows_changed(self) -> None:
        if self._on_rows_changed is not None:
            self._on_rows_changed()

    def _schedule(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._finish_background)

    def _finish_background(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            Log.debug(f"Background page call failed: {task.exception()}")
