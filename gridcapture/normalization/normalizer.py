"""Pure mapping from heterogeneous upstream JSON items to canonical records.

Every function here is total: items that are not objects, lack an
identifier, or fail a kind's classification predicate are dropped rather
than raising.
"""

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, TypeVar

from gridcapture.normalization.models import (
    RFI,
    CanonicalRecord,
    Commitment,
    Drawing,
    LookupEntry,
    LookupMap,
    Specification,
)

_MAX_DISCIPLINE_DEPTH = 5
_SKIPPED_DISCIPLINE_KEYS = frozenset({"permissions", "metadata", "view_options"})

R = TypeVar("R", bound=CanonicalRecord)


def coerce_id(value: Any) -> int | None:
    """Return an integer identifier, or None when the value cannot be one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    return None


def extract_items(payload: Any) -> list[Any]:
    """Locate the item array inside a response payload."""
    if not payload:
        return []
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, Mapping):
        return []
    for key in ("data", "entities"):
        if isinstance(payload.get(key), list):
            return payload[key]
    for value in payload.values():
        if isinstance(value, list) and value:
            return value
    return []


def _has_identity(item: Any) -> bool:
    return isinstance(item, Mapping) and item.get("id") is not None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _nested_name(value: Any) -> str | None:
    if isinstance(value, Mapping):
        name = value.get("name")
        return name if isinstance(name, str) else None
    return None


def _looks_like_commitment(item: Mapping[str, Any]) -> bool:
    return bool(item.get("vendor") or item.get("vendor_name") or item.get("contract_date"))


def is_drawing(item: Any) -> bool:
    """Has a number-like field and none of the commitment markers."""
    if not _has_identity(item):
        return False
    if not (item.get("number") or item.get("drawing_number")):
        return False
    return not _looks_like_commitment(item)


def is_commitment(item: Any) -> bool:
    """No drawing number, some identifying info, and some vendor/contract context."""
    if not _has_identity(item):
        return False
    if item.get("drawing_number"):
        return False
    has_info = item.get("number") or item.get("title") or item.get("contract_date")
    item_type = item.get("type")
    has_context = (
        item.get("vendor")
        or item.get("vendor_name")
        or (item_type and "Contract" in str(item_type))
    )
    return bool(has_info and has_context)


def is_rfi(item: Any) -> bool:
    if not _has_identity(item):
        return False
    if item.get("drawing_number") or item.get("vendor") or item.get("vendor_name"):
        return False
    return bool(item.get("subject") and item.get("status") and "number" in item)


def is_discipline_item(item: Any) -> bool:
    """An ``{id, name}`` object carrying neither drawing nor commitment fields."""
    if not _has_identity(item):
        return False
    if not isinstance(item.get("name"), str) or not item["name"]:
        return False
    if item.get("number") or item.get("drawing_number"):
        return False
    return not _looks_like_commitment(item)


def normalize_drawing(item: Mapping[str, Any]) -> Drawing | None:
    record_id = coerce_id(item.get("id"))
    if record_id is None:
        return None
    discipline = item.get("discipline") or None
    return Drawing(
        id=record_id,
        num=_text(item.get("number") or item.get("drawing_number")),
        title=_text(item.get("title")),
        discipline=discipline,
        discipline_name=item.get("discipline_name") or _nested_name(discipline),
    )


def normalize_drawings(items: Iterable[Any]) -> list[Drawing]:
    drawings = (normalize_drawing(item) for item in items if is_drawing(item))
    return [drawing for drawing in drawings if drawing is not None]


def normalize_rfi(item: Mapping[str, Any]) -> RFI | None:
    record_id = coerce_id(item.get("id"))
    if record_id is None:
        return None
    assignee = item.get("assignee_name") or _nested_name(item.get("assignee"))
    if assignee is None and isinstance(item.get("assignee"), str):
        assignee = item["assignee"]
    return RFI(
        id=record_id,
        number=_text(item.get("number") or item.get("rfi_number")),
        subject=_text(item.get("subject") or item.get("title")),
        status=_text(item.get("status") or "unknown"),
        created_at=_text(item.get("created_at")),
        due_date=item.get("due_date"),
        assignee=assignee,
        ball_in_court=item.get("ball_in_court"),
    )


def normalize_rfis(items: Iterable[Any]) -> list[RFI]:
    """Crawled RFIs only need the shared identity precondition."""
    rfis = (normalize_rfi(item) for item in items if _has_identity(item))
    return [rfi for rfi in rfis if rfi is not None]


def normalize_commitment(item: Mapping[str, Any]) -> Commitment | None:
    record_id = coerce_id(item.get("id"))
    if record_id is None:
        return None
    vendor = item.get("vendor")
    return Commitment(
        id=record_id,
        number=_text(item.get("number")),
        title=_text(item.get("title")),
        vendor=vendor,
        vendor_name=item.get("vendor_name") or _nested_name(vendor),
        status=item.get("status"),
        contract_date=item.get("contract_date"),
        type=item.get("type"),
        approved_amount=item.get("approved_amount"),
        pending_amount=item.get("pending_amount"),
        draft_amount=item.get("draft_amount"),
    )


def normalize_commitments(items: Iterable[Any]) -> list[Commitment]:
    commitments = (normalize_commitment(item) for item in items if is_commitment(item))
    return [commitment for commitment in commitments if commitment is not None]


def _division_id(item: Mapping[str, Any]) -> int | None:
    for key in ("specification_section_division_id", "division_id"):
        if item.get(key) is not None:
            return coerce_id(item[key])
    for key in ("specification_section_division", "division"):
        nested = item.get(key)
        if isinstance(nested, Mapping):
            return coerce_id(nested.get("id"))
    return None


def _revision_label(item: Mapping[str, Any]) -> str | None:
    current = item.get("current_revision")
    if isinstance(current, Mapping) and current.get("revision") is not None:
        return _text(current["revision"])
    if item.get("revision") is not None:
        return _text(item["revision"])
    return None


def normalize_specification(item: Mapping[str, Any]) -> Specification | None:
    # The upstream API carries the section title in ``description``.
    record_id = coerce_id(item.get("id"))
    if record_id is None:
        return None
    return Specification(
        id=record_id,
        number=_text(item.get("number")),
        title=_text(item.get("description")),
        division_id=_division_id(item),
        revision=_revision_label(item),
    )


def normalize_specifications(items: Iterable[Any]) -> list[Specification]:
    specs = (normalize_specification(item) for item in items if _has_identity(item))
    return [spec for spec in specs if spec is not None]


def build_discipline_map(items: Sequence[Any]) -> LookupMap:
    """Discipline id -> entry, indexed by position in the source list."""
    entries: dict[int, LookupEntry] = {}
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            continue
        name = item.get("name")
        record_id = coerce_id(item.get("id"))
        if record_id is None or not isinstance(name, str) or not name:
            continue
        entries[record_id] = LookupEntry(name=name, index=index, display_name=name)
    return MappingProxyType(entries)


def build_division_map(items: Sequence[Any]) -> LookupMap:
    """Division id -> entry; display name is ``"{number} - {description}"``."""
    entries: dict[int, LookupEntry] = {}
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            continue
        record_id = coerce_id(item.get("id"))
        name = item.get("description") or item.get("name")
        if record_id is None or not name:
            continue
        number = item.get("number")
        display_name = f"{number} - {name}" if number else str(name)
        entries[record_id] = LookupEntry(
            name=str(name), index=index, display_name=display_name
        )
    return MappingProxyType(entries)


def _collect_disciplines(
    node: Any, entries: dict[int, LookupEntry], sort_index: int, depth: int
) -> None:
    if depth > _MAX_DISCIPLINE_DEPTH or not node or not isinstance(node, (Mapping, list)):
        return
    if isinstance(node, list):
        for index, child in enumerate(node):
            _collect_disciplines(child, entries, index, depth + 1)
        return
    name = node.get("name")
    if (
        node.get("id")
        and isinstance(name, str)
        and not node.get("drawing_number")
        and not node.get("number")
    ):
        record_id = coerce_id(node["id"])
        if record_id is not None:
            entries[record_id] = LookupEntry(name=name, index=sort_index, display_name=name)
    for key, value in node.items():
        if key not in _SKIPPED_DISCIPLINE_KEYS:
            _collect_disciplines(value, entries, sort_index, depth + 1)


def discipline_map_from_drawings(payload: Any, drawings: Sequence[Drawing]) -> LookupMap:
    """Derive disciplines from a captured drawing payload and its drawings."""
    entries: dict[int, LookupEntry] = {}
    _collect_disciplines(payload, entries, 0, 0)
    for drawing in drawings:
        discipline = drawing.discipline
        if isinstance(discipline, Mapping):
            record_id = coerce_id(discipline.get("id"))
            name = discipline.get("name")
        elif isinstance(discipline, int) and not isinstance(discipline, bool):
            record_id, name = discipline, drawing.discipline_name
        else:
            continue
        if record_id is None or not name or record_id in entries:
            continue
        entries[record_id] = LookupEntry(name=name, index=len(entries), display_name=name)
    return MappingProxyType(entries)


def dedupe_by_id(records: Iterable[R]) -> list[R]:
    """Keep the first record per id, preserving order."""
    seen: set[int] = set()
    unique: list[R] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique
