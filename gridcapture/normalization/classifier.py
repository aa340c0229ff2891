"""Route a passively captured payload to the record kind it carries."""

from typing import Any

from gridcapture.logging.logger import Log
from gridcapture.normalization.models import CaptureBatch
from gridcapture.normalization.normalizer import (
    build_discipline_map,
    discipline_map_from_drawings,
    extract_items,
    is_commitment,
    is_discipline_item,
    is_drawing,
    is_rfi,
    normalize_commitments,
    normalize_drawings,
    normalize_rfi,
)


def classify_capture(
    payload: Any, source_url: str, project_id: str | None
) -> CaptureBatch | None:
    """Normalize a captured payload, or return None when nothing is recognised.

    The source URL decides which kinds are considered, in priority order:
    disciplines, RFIs, commitments, then drawings. Only the first item is
    inspected to pick the kind; the whole array is then filtered by that
    kind's predicate.
    """
    if not project_id:
        Log.debug("Capture has no project id, skipping", source=source_url)
        return None

    items = extract_items(payload)
    if not items:
        return None

    source = (source_url or "").lower()
    first = items[0]
    commitment_source = "commitment" in source or "contract" in source
    drawing_source = "drawing" in source or "discipline" in source or "groups" in source

    if "discipline" in source and is_discipline_item(first):
        lookup = build_discipline_map(items)
        if lookup:
            return CaptureBatch(kind="disciplines", project_id=project_id, lookup=lookup)

    if "/rfis" in source and is_rfi(first):
        rfis = [rfi for rfi in map(normalize_rfi, filter(is_rfi, items)) if rfi is not None]
        if rfis:
            return CaptureBatch(kind="rfis", project_id=project_id, records=list(rfis))

    if commitment_source and is_commitment(first):
        commitments = normalize_commitments(items)
        if commitments:
            return CaptureBatch(
                kind="commitments", project_id=project_id, records=list(commitments)
            )

    if (drawing_source or not commitment_source) and is_drawing(first):
        drawings = normalize_drawings(items)
        if drawings:
            return CaptureBatch(
                kind="drawings",
                project_id=project_id,
                records=list(drawings),
                lookup=discipline_map_from_drawings(payload, drawings),
            )

    Log.debug(f"Capture with {len(items)} items not recognised", source=source_url)
    return None
