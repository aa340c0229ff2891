from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from gridcapture.scan.models import ScrollMetrics

# Opaque handle to a scroll container; None means whole-page scrolling.
ScrollTarget = Any


class ChangeSignal(ABC):
    """Subscription to "new rows appeared" notifications."""

    @abstractmethod
    def disconnect(self) -> None:
        """Stop delivering notifications. Must be synchronous and idempotent."""


class BaseScanSurface(ABC):
    """Contract for the page a scan drives.

    Element handles are opaque to the orchestrator; it only passes them back
    into the surface that produced them.
    """

    @abstractmethod
    def current_url(self) -> str:
        """Return the URL the page is currently showing."""

    @abstractmethod
    async def find_group_rows(self) -> list[Any]:
        """Return the individually addressable group rows, possibly empty."""

    @abstractmethod
    async def find_row_expander(self, row: Any) -> Any | None:
        """Return the expand control inside a group row, if it has one."""

    @abstractmethod
    async def find_expand_all_toggle(self) -> Any | None:
        """Return the single expand/collapse-all control, if present."""

    @abstractmethod
    async def label_of(self, element: Any) -> str:
        """Return the accessible label of an element, or an empty string."""

    @abstractmethod
    async def click(self, element: Any) -> None:
        """Click an element without waiting for navigation."""

    @abstractmethod
    async def find_scroll_container(
        self, candidates: Sequence[str], min_overflow: int
    ) -> ScrollTarget:
        """Return the first candidate whose scroll extent exceeds its visible
        extent by more than ``min_overflow``, or None for the whole page."""

    @abstractmethod
    async def scroll_to(self, target: ScrollTarget, position: int) -> None:
        """Set the vertical scroll position of the target."""

    @abstractmethod
    async def scroll_metrics(self, target: ScrollTarget) -> ScrollMetrics:
        """Measure the target's scroll position and extents."""

    @abstractmethod
    async def watch_rows(
        self, target: ScrollTarget, on_change: Callable[[], None]
    ) -> ChangeSignal:
        """Call ``on_change`` whenever rows are added under the grid."""
