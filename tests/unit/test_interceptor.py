import asyncio

from gridcapture.capture.interceptor import (
    CaptureInterceptor,
    is_json_content,
    parse_context_ids,
    read_pagination_headers,
)
from gridcapture.capture.models import CaptureEvent, ContextIds

_JSON = {"content-type": "application/json; charset=utf-8"}


def _make_interceptor(page_url: str = "") -> tuple[CaptureInterceptor, list[CaptureEvent]]:
    interceptor = CaptureInterceptor("procore.com", page_url=page_url)
    events: list[CaptureEvent] = []
    interceptor.subscribe(events.append)
    return interceptor, events


def _body(data: bytes):  # type: ignore[no-untyped-def]
    async def read() -> bytes:
        return data

    return read


class TestRelevanceFilter:
    def test_drawing_log_on_host(self) -> None:
        interceptor, _ = _make_interceptor()
        url = "https://app.procore.com/rest/v1.1/projects/1/drawing_areas/2/drawing_log"
        assert interceptor.is_relevant_url(url)

    def test_other_host_rejected(self) -> None:
        interceptor, _ = _make_interceptor()
        assert not interceptor.is_relevant_url("https://evil.com/rest/v1.0/projects/1/rfis")
        assert not interceptor.is_relevant_url("https://notprocore.com/rest/v1.0/projects/1/rfis")

    def test_static_asset_rejected(self) -> None:
        interceptor, _ = _make_interceptor()
        assert not interceptor.is_relevant_url("https://app.procore.com/assets/drawings.js")

    def test_path_without_keyword_rejected(self) -> None:
        interceptor, _ = _make_interceptor()
        assert not interceptor.is_relevant_url("https://app.procore.com/rest/v1.0/me")

    def test_relative_url_resolved_against_page(self) -> None:
        interceptor, _ = _make_interceptor("https://app.procore.com/562/project/rfis")
        assert interceptor.is_relevant_url("/rest/v1.0/projects/562/rfis")

    def test_empty_url(self) -> None:
        interceptor, _ = _make_interceptor()
        assert not interceptor.is_relevant_url(None)

    def test_non_json_not_accepted(self) -> None:
        interceptor, _ = _make_interceptor()
        url = "https://app.procore.com/rest/v1.0/projects/1/rfis"
        assert not interceptor.accepts(url, {"content-type": "text/html"})


class TestContextIds:
    def test_parses_all_ids(self) -> None:
        url = "https://app.procore.com/webclients/host/companies/8/projects/562/tools/drawings/areas/99"
        assert parse_context_ids(url) == ContextIds(company_id="8", project_id="562", area_id="99")

    def test_legacy_project_path(self) -> None:
        ids = parse_context_ids("https://app.procore.com/562/project/drawing_log")
        assert ids.project_id == "562"
        assert ids.company_id is None

    def test_no_ids(self) -> None:
        assert parse_context_ids("https://app.procore.com/") == ContextIds()


class TestHeaders:
    def test_pagination_headers(self) -> None:
        pagination = read_pagination_headers({"Total": "1120", "Per-Page": "500"})
        assert pagination.total == 1120
        assert pagination.per_page == 500

    def test_missing_and_garbage_headers(self) -> None:
        pagination = read_pagination_headers({"total": "lots"})
        assert pagination.total is None
        assert pagination.per_page is None

    def test_json_content_type(self) -> None:
        assert is_json_content({"Content-Type": "application/json"})
        assert not is_json_content({})


class TestObserve:
    def test_emits_event_with_context(self) -> None:
        interceptor, events = _make_interceptor(
            "https://app.procore.com/companies/8/projects/562/tools/rfis"
        )
        url = "https://app.procore.com/rest/v1.0/projects/562/rfis"

        async def run() -> None:
            interceptor.observe(url, {**_JSON, "Total": "2"}, _body(b'[{"id": 1}]'))
            await interceptor.drain()

        asyncio.run(run())

        assert len(events) == 1
        assert events[0].payload == [{"id": 1}]
        assert events[0].source_url == url
        assert events[0].context_ids.project_id == "562"
        assert events[0].pagination.total == 2

    def test_irrelevant_response_not_scheduled(self) -> None:
        interceptor, events = _make_interceptor()

        async def run() -> object:
            return interceptor.observe("https://app.procore.com/rest/v1.0/me", _JSON, _body(b"{}"))

        assert asyncio.run(run()) is None
        assert events == []

    def test_decode_failure_dropped(self) -> None:
        interceptor, events = _make_interceptor()
        url = "https://app.procore.com/rest/v1.0/projects/1/rfis"

        async def run() -> None:
            interceptor.observe(url, _JSON, _body(b"<html>not json</html>"))
            await interceptor.drain()

        asyncio.run(run())

        assert events == []

    def test_failing_listener_does_not_block_others(self) -> None:
        interceptor = CaptureInterceptor("procore.com")
        received: list[CaptureEvent] = []

        def broken(event: CaptureEvent) -> None:
            raise RuntimeError("listener down")

        interceptor.subscribe(broken)
        interceptor.subscribe(received.append)
        interceptor.emit(CaptureEvent(payload=[], source_url="https://app.procore.com/rfis"))

        assert len(received) == 1

    def test_unsubscribe(self) -> None:
        interceptor = CaptureInterceptor("procore.com")
        received: list[CaptureEvent] = []
        unsubscribe = interceptor.subscribe(received.append)

        unsubscribe()
        unsubscribe()
        interceptor.emit(CaptureEvent(payload=[], source_url="https://app.procore.com/rfis"))

        assert received == []
