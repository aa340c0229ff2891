from collections.abc import Callable

from gridcapture.capture.interceptor import CaptureInterceptor
from gridcapture.capture.models import CaptureEvent
from gridcapture.normalization.classifier import classify_capture
from gridcapture.relay.bridge import RelayBridge
from gridcapture.relay.messages import (
    RECORDS_READY,
    SCAN_PROGRESS,
    WIRETAP_DATA,
    Message,
    capture_payload,
    records_payload,
)
from gridcapture.scan.models import ProgressEvent


class CaptureForwarder:
    """Relays raw captures and their normalized records to the consumer."""

    def __init__(self, bridge: RelayBridge) -> None:
        self._bridge = bridge

    def attach(self, interceptor: CaptureInterceptor) -> Callable[[], None]:
        return interceptor.subscribe(self.forward)

    def forward(self, event: CaptureEvent) -> None:
        self._bridge.send(Message(type=WIRETAP_DATA, payload=capture_payload(event)))

        batch = classify_capture(event.payload, event.source_url, event.context_ids.project_id)
        if batch is None:
            return
        self._bridge.send(
            Message(
                type=RECORDS_READY,
                payload=records_payload(
                    batch.kind,
                    batch.project_id,
                    list(batch.records),
                    batch.lookup,
                    source="capture",
                ),
            )
        )


def progress_publisher(bridge: RelayBridge) -> Callable[[ProgressEvent], None]:
    """Progress sink for the orchestrator that sends SCAN_PROGRESS messages."""

    def publish(event: ProgressEvent) -> None:
        bridge.send(Message(type=SCAN_PROGRESS, payload=event.to_payload()))

    return publish
