from gridcapture.normalization.classifier import classify_capture
from gridcapture.normalization.normalizer import (
    build_discipline_map,
    build_division_map,
    dedupe_by_id,
    normalize_commitments,
    normalize_drawings,
    normalize_rfis,
    normalize_specifications,
)

__all__ = [
    "build_discipline_map",
    "build_division_map",
    "classify_capture",
    "dedupe_by_id",
    "normalize_commitments",
    "normalize_drawings",
    "normalize_rfis",
    "normalize_specifications",
]
