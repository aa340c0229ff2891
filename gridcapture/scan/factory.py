from collections.abc import Callable
from typing import Any

from gridcapture.config.settings import Settings
from gridcapture.scan.base import BaseScanSurface
from gridcapture.scan.playwright_surface import PlaywrightScanSurface


class ScanSurfaceFactory:
    """Creates the scan surface named in settings around a live page."""

    ADAPTERS: dict[str, Callable[[Any], BaseScanSurface]] = {
        "playwright": PlaywrightScanSurface,
    }

    @classmethod
    def create(cls, settings: Settings, page: Any) -> BaseScanSurface:
        name = settings.scan_surface.lower()
        adapter = cls.ADAPTERS.get(name)
        if adapter is None:
            raise ValueError(
                f"Unknown scan surface '{name}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter(page)
