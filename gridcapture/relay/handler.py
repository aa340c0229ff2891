"""Answers consumer commands arriving over the relay."""

from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlparse

from gridcapture.capture.interceptor import CaptureInterceptor
from gridcapture.fetcher.service import FetchService
from gridcapture.logging.logger import Log
from gridcapture.relay.bridge import RelayBridge
from gridcapture.relay.exceptions import UnknownActionError
from gridcapture.relay.messages import (
    COMMANDS,
    FETCH_RESOURCE,
    GET_PAGE_INFO,
    RECORDS_READY,
    STOP_SCAN,
    TRIGGER_SCAN,
    Message,
    records_payload,
)
from gridcapture.scan.orchestrator import ScanOrchestrator

Response = dict[str, Any]


class CommandHandler:
    """Dispatches commands to the orchestrator, fetcher and interceptor.

    ``handle`` never raises; every failure comes back as a response dict.
    A command whose payload carries ``replyTo`` gets its response sent back
    over the bridge under that message type.
    """

    def __init__(
        self,
        orchestrator: ScanOrchestrator,
        fetch_service: FetchService,
        interceptor: CaptureInterceptor,
        bridge: RelayBridge,
        host_domain: str,
    ) -> None:
        self._orchestrator = orchestrator
        self._fetch_service = fetch_service
        self._interceptor = interceptor
        self._bridge = bridge
        self._host_domain = host_domain.lower()
        self._routes: dict[str, Callable[[dict[str, Any]], Awaitable[Response]]] = {
            TRIGGER_SCAN: self._trigger_scan,
            STOP_SCAN: self._stop_scan,
            GET_PAGE_INFO: self._page_info,
            FETCH_RESOURCE: self._fetch_resource,
        }

    def attach(self) -> Callable[[], None]:
        """Subscribe to every command type; returns a function that detaches."""
        unsubscribers = [self._bridge.subscribe(action, self._on_message) for action in COMMANDS]

        def detach() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return detach

    async def handle(self, message: Message) -> Response:
        try:
            route = self._routes.get(message.type)
            if route is None:
                raise UnknownActionError(message.type)
            return await route(message.payload)
        except UnknownActionError:
            Log.warning(f"Unknown action: {message.type}")
            return {"error": "Unknown action"}
        except Exception as exc:
            Log.error(f"Command {message.type} failed: {exc}")
            return {"success": False, "error": str(exc)}

    async def _on_message(self, message: Message) -> None:
        response = await self.handle(message)
        reply_to = message.payload.get("replyTo")
        if reply_to:
            self._bridge.send(Message(type=reply_to, payload=response))

    async def _trigger_scan(self, payload: dict[str, Any]) -> Response:
        scan_type = payload.get("scanType") or "drawings"
        result = await self._orchestrator.start(scan_type)
        return result.to_payload()

    async def _stop_scan(self, payload: dict[str, Any]) -> Response:
        return self._orchestrator.stop().to_payload()

    async def _page_info(self, payload: dict[str, Any]) -> Response:
        url = self._interceptor.page_url
        ids = self._interceptor.context_ids()
        return {
            "url": url,
            "companyId": ids.company_id,
            "projectId": ids.project_id,
            "drawingAreaId": ids.area_id,
            "isMatchingHost": self._is_matching_host(url),
        }

    async def _fetch_resource(self, payload: dict[str, Any]) -> Response:
        ids = self._interceptor.context_ids()
        resource_type = payload.get("resourceType") or ""
        project_id = payload.get("projectId") or ids.project_id
        outcome = await self._fetch_service.run(
            resource_type,
            project_id,
            area_id=payload.get("areaId") or ids.area_id,
            company_id=payload.get("companyId") or ids.company_id,
            on_progress=lambda fetched, total: Log.debug(
                f"Fetched {fetched}/{total if total is not None else '?'} {resource_type}"
            ),
        )
        if not outcome.success:
            return {"success": False, "error": outcome.error}

        self._bridge.send(
            Message(
                type=RECORDS_READY,
                payload=records_payload(
                    outcome.kind, project_id, outcome.records, outcome.lookup, source="fetch"
                ),
            )
        )
        return {
            "success": True,
            "kind": outcome.kind,
            "count": len(outcome.records),
            "partial": outcome.partial,
        }

    def _is_matching_host(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return host == self._host_domain or host.endswith(f".{self._host_domain}")
