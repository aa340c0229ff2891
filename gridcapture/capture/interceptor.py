"""Passive capture of relevant JSON responses."""

import asyncio
import json
import re
from collections.abc import Awaitable, Callable, Mapping
from urllib.parse import urljoin, urlparse

from gridcapture.capture.models import CaptureEvent, ContextIds, PaginationHeaders
from gridcapture.logging.logger import Log

CaptureListener = Callable[[CaptureEvent], None]
BodyReader = Callable[[], Awaitable[bytes | str]]

_STATIC_ASSET = re.compile(
    r"\.(png|jpe?g|gif|svg|ico|css|js|map|woff2?|ttf|eot|otf|pdf|zip|docx?|xlsx?)$"
)
_RELEVANT_PATH_KEYWORDS = (
    "drawing_log",
    "drawing_revisions",
    "/drawings",
    "drawing_areas",
    "discipline",
    "groups",
    "server_side",
    "serverside",
    "/rfis",
    "commitment",
    "contract",
)
_PROJECT_PATTERNS = (re.compile(r"projects/(\d+)"), re.compile(r"/(\d+)/project"))
_AREA_PATTERNS = (re.compile(r"areas/(\d+)"), re.compile(r"drawing_areas/(\d+)"))
_COMPANY_PATTERNS = (re.compile(r"companies/(\d+)"),)


def _first_match(patterns: tuple[re.Pattern[str], ...], url: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def parse_context_ids(url: str) -> ContextIds:
    """Extract company, project and drawing-area ids from a page URL."""
    return ContextIds(
        company_id=_first_match(_COMPANY_PATTERNS, url),
        project_id=_first_match(_PROJECT_PATTERNS, url),
        area_id=_first_match(_AREA_PATTERNS, url),
    )


def _header(headers: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = headers.get(name)
        if value:
            return value
    wanted = {name.lower() for name in names}
    for key, value in headers.items():
        if key.lower() in wanted and value:
            return value
    return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def read_pagination_headers(headers: Mapping[str, str]) -> PaginationHeaders:
    return PaginationHeaders(
        total=_parse_int(_header(headers, "total", "Total")),
        per_page=_parse_int(_header(headers, "per-page", "Per-Page")),
    )


def is_json_content(headers: Mapping[str, str]) -> bool:
    content_type = _header(headers, "content-type", "Content-Type") or ""
    return "application/json" in content_type.lower()


class CaptureInterceptor:
    """Filters observed responses and emits CaptureEvents to subscribers.

    Decoding runs in a background task so whoever produced the response is
    never delayed; decode failures are dropped.
    """

    def __init__(self, host_domain: str, page_url: str = "") -> None:
        self._host_domain = host_domain.lower()
        self.page_url = page_url
        self._listeners: list[CaptureListener] = []
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(self, listener: CaptureListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def context_ids(self) -> ContextIds:
        return parse_context_ids(self.page_url)

    def is_relevant_url(self, url: str | None) -> bool:
        """Purely syntactic filter on the response URL."""
        if not url:
            return False
        parsed = urlparse(urljoin(self.page_url, url) if self.page_url else url)
        host = (parsed.hostname or "").lower()
        if host != self._host_domain and not host.endswith(f".{self._host_domain}"):
            return False
        path = parsed.path.lower()
        if _STATIC_ASSET.search(path):
            return False
        return any(keyword in path for keyword in _RELEVANT_PATH_KEYWORDS)

    def accepts(self, url: str | None, headers: Mapping[str, str]) -> bool:
        return self.is_relevant_url(url) and is_json_content(headers)

    def observe(
        self, url: str, headers: Mapping[str, str], read_body: BodyReader
    ) -> asyncio.Task[None] | None:
        """Schedule decode and emission for an accepted response."""
        if not self.accepts(url, headers):
            return None
        pagination = read_pagination_headers(headers)
        context_ids = self.context_ids()
        task = asyncio.get_running_loop().create_task(
            self._decode_and_emit(url, read_body, context_ids, pagination)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled decode to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _decode_and_emit(
        self,
        url: str,
        read_body: BodyReader,
        context_ids: ContextIds,
        pagination: PaginationHeaders,
    ) -> None:
        try:
            body = await read_body()
            payload = json.loads(body)
        except Exception as exc:
            Log.debug(f"Dropped undecodable capture: {exc}", source=url[:100])
            return
        size = len(payload) if isinstance(payload, list) else "object"
        Log.debug(f"Captured {size} items", source=url[:100])
        self.emit(
            CaptureEvent(
                payload=payload,
                source_url=url,
                context_ids=context_ids,
                pagination=pagination,
            )
        )

    def emit(self, event: CaptureEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                Log.error(f"Capture listener failed: {exc}", source=event.source_url[:100])
