from gridcapture.relay.bridge import DeliveryStatus, RelayBridge
from gridcapture.relay.forwarder import CaptureForwarder, progress_publisher
from gridcapture.relay.handler import CommandHandler
from gridcapture.relay.messages import (
    FETCH_RESOURCE,
    GET_PAGE_INFO,
    RECORDS_READY,
    SCAN_PROGRESS,
    STOP_SCAN,
    TRIGGER_SCAN,
    WIRETAP_DATA,
    Message,
)

__all__ = [
    "FETCH_RESOURCE",
    "GET_PAGE_INFO",
    "RECORDS_READY",
    "SCAN_PROGRESS",
    "STOP_SCAN",
    "TRIGGER_SCAN",
    "WIRETAP_DATA",
    "CaptureForwarder",
    "CommandHandler",
    "DeliveryStatus",
    "Message",
    "RelayBridge",
    "progress_publisher",
]
