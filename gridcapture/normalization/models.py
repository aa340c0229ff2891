from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

RecordKind = Literal["drawing", "rfi", "commitment", "specification"]


@dataclass(frozen=True)
class Drawing:
    """A sheet from the drawing log."""

    id: int
    num: str
    title: str = ""
    discipline: int | Mapping[str, Any] | None = None
    discipline_name: str | None = None
    kind: RecordKind = field(default="drawing", init=False)


@dataclass(frozen=True)
class RFI:
    """A request for information."""

    id: int
    number: str
    subject: str
    status: str = "unknown"
    created_at: str = ""
    due_date: str | None = None
    assignee: str | None = None
    ball_in_court: str | None = None
    kind: RecordKind = field(default="rfi", init=False)


@dataclass(frozen=True)
class Commitment:
    """A commitment, purchase order or work order contract."""

    id: int
    number: str = ""
    title: str = ""
    vendor: Any = None
    vendor_name: str | None = None
    status: str | None = None
    contract_date: str | None = None
    type: str | None = None
    approved_amount: float | None = None
    pending_amount: float | None = None
    draft_amount: float | None = None
    kind: RecordKind = field(default="commitment", init=False)


@dataclass(frozen=True)
class Specification:
    """A specification section."""

    id: int
    number: str
    title: str
    division_id: int | None = None
    revision: str | None = None
    kind: RecordKind = field(default="specification", init=False)


CanonicalRecord = Drawing | RFI | Commitment | Specification


@dataclass(frozen=True)
class LookupEntry:
    """One discipline or division, positioned by its source ordering."""

    name: str
    index: int
    display_name: str = ""


LookupMap = Mapping[int, LookupEntry]

EMPTY_LOOKUP: LookupMap = MappingProxyType({})


@dataclass(frozen=True)
class ResourcePage:
    """One page of an active crawl."""

    items: list[Any]
    total: int | None = None
    per_page: int | None = None


@dataclass(frozen=True)
class CaptureBatch:
    """Canonical records recognised in one captured payload."""

    kind: Literal["drawings", "rfis", "commitments", "disciplines"]
    project_id: str
    records: list[CanonicalRecord] = field(default_factory=list)
    lookup: LookupMap = field(default_factory=lambda: EMPTY_LOOKUP)
