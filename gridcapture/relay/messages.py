"""Message envelope and payload shapes carried over the relay."""

from dataclasses import asdict, dataclass, field
from typing import Any

from gridcapture.capture.models import CaptureEvent
from gridcapture.normalization.models import CanonicalRecord, LookupMap

# Commands: consumer -> capture/scan layer
TRIGGER_SCAN = "TRIGGER_SCAN"
STOP_SCAN = "STOP_SCAN"
GET_PAGE_INFO = "GET_PAGE_INFO"
FETCH_RESOURCE = "FETCH_RESOURCE"

# Events: capture/scan layer -> consumer
WIRETAP_DATA = "WIRETAP_DATA"
SCAN_PROGRESS = "SCAN_PROGRESS"
RECORDS_READY = "RECORDS_READY"

COMMANDS = frozenset({TRIGGER_SCAN, STOP_SCAN, GET_PAGE_INFO, FETCH_RESOURCE})


@dataclass(frozen=True)
class Message:
    type: str
    payload: dict[str, Any] = field(default_factory=dict)


def capture_payload(event: CaptureEvent) -> dict[str, Any]:
    return {
        "payload": event.payload,
        "sourceUrl": event.source_url,
        "contextIds": {
            "companyId": event.context_ids.company_id,
            "projectId": event.context_ids.project_id,
            "areaId": event.context_ids.area_id,
        },
        "paginationHeaders": {
            "total": event.pagination.total,
            "perPage": event.pagination.per_page,
        },
    }


def records_payload(
    kind: str,
    project_id: str | None,
    records: list[CanonicalRecord],
    lookup: LookupMap,
    source: str,
) -> dict[str, Any]:
    return {
        "kind": kind,
        "projectId": project_id,
        "source": source,
        "records": [asdict(record) for record in records],
        "lookup": {str(key): asdict(entry) for key, entry in lookup.items()},
    }
