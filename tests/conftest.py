import pytest

from gridcapture.config.settings import Settings
from tests.fakes import FakeScanSurface


@pytest.fixture()
def fast_settings() -> Settings:
    """Settings with near-zero delays so scans finish in milliseconds."""
    return Settings(
        scan_tick_seconds=0.001,
        scan_stable_threshold=3,
        scan_timeout_seconds=5.0,
        expand_click_delay_seconds=0.0,
        expand_settle_seconds=0.0,
        expand_all_settle_seconds=0.0,
    )


@pytest.fixture()
def fake_surface() -> FakeScanSurface:
    return FakeScanSurface()
