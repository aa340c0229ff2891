from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ContextIds:
    """Numeric identifiers parsed from the host page URL."""

    company_id: str | None = None
    project_id: str | None = None
    area_id: str | None = None


@dataclass(frozen=True)
class PaginationHeaders:
    total: int | None = None
    per_page: int | None = None


@dataclass(frozen=True)
class CaptureEvent:
    """A decoded JSON response observed on the wire."""

    payload: Any
    source_url: str
    context_ids: ContextIds = field(default_factory=ContextIds)
    pagination: PaginationHeaders = field(default_factory=PaginationHeaders)
