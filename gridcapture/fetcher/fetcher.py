"""Bounded paginated crawls against known REST endpoints."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from gridcapture.config.settings import Settings
from gridcapture.fetcher import endpoints
from gridcapture.fetcher.client import ApiClient
from gridcapture.fetcher.exceptions import (
    DecodeError,
    FetchError,
    PageLimitExceeded,
    TransientFetchError,
)
from gridcapture.logging.logger import Log
from gridcapture.normalization.models import (
    EMPTY_LOOKUP,
    RFI,
    CanonicalRecord,
    Commitment,
    Drawing,
    LookupMap,
    Specification,
)
from gridcapture.normalization.normalizer import (
    build_discipline_map,
    build_division_map,
    dedupe_by_id,
    extract_items,
    normalize_commitments,
    normalize_drawings,
    normalize_rfis,
    normalize_specifications,
)

R = TypeVar("R", bound=CanonicalRecord)

StopReason = Literal["exhausted", "page_limit", "errors"]
ProgressCallback = Callable[[int, int | None], None]
Normalize = Callable[[Sequence[Any]], list[R]]


@dataclass(frozen=True)
class CrawlResult(Generic[R]):
    """Records accumulated by one crawl, complete or partial."""

    records: list[R] = field(default_factory=list)
    pages_fetched: int = 0
    requests_made: int = 0
    stop_reason: StopReason = "exhausted"

    @property
    def partial(self) -> bool:
        return self.stop_reason != "exhausted"


class PaginatedFetcher:
    """Pages through a resource until a short page, the ceiling, or repeated errors.

    Public methods never raise: transient failures are retried up to the
    consecutive-error limit, after which whatever was accumulated is returned.
    """

    def __init__(self, client: ApiClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def crawl(
        self,
        path: str,
        *,
        per_page: int,
        normalize: Normalize[R],
        max_pages: int,
        on_progress: ProgressCallback | None = None,
    ) -> CrawlResult[R]:
        records: list[R] = []
        page = 1
        has_more = True
        consecutive_errors = 0
        pages_fetched = 0
        requests_made = 0
        stop_reason: StopReason = "exhausted"
        max_errors = self._settings.max_consecutive_errors

        while has_more and consecutive_errors < max_errors:
            try:
                requests_made += 1
                result = await self._client.get_page(
                    path, {"page": page, "per_page": per_page}
                )
                batch = normalize(result.items)
                records.extend(batch)
                pages_fetched += 1
                consecutive_errors = 0
                Log.info(f"Page {page} of {path} returned {len(batch)} records")
                if on_progress is not None:
                    on_progress(len(records), result.total)
                if len(result.items) < per_page:
                    has_more = False
                else:
                    page = self._next_page(page, max_pages, path)
            except PageLimitExceeded as exc:
                Log.warning(str(exc))
                has_more = False
                stop_reason = "page_limit"
            except DecodeError as exc:
                consecutive_errors += 1
                Log.warning(f"Dropped undecodable page {page} of {path}: {exc}")
                try:
                    page = self._next_page(page, max_pages, path)
                except PageLimitExceeded as limit:
                    Log.warning(str(limit))
                    has_more = False
                    stop_reason = "page_limit"
            except TransientFetchError as exc:
                consecutive_errors += 1
                Log.error(f"Error on page {page} of {path}: {exc}")

        if consecutive_errors >= max_errors:
            stop_reason = "errors"
            Log.error(f"Too many consecutive errors on {path}, stopping")
        Log.info(f"Finished {path}: {len(records)} records in {pages_fetched} pages")
        return CrawlResult(
            records=records,
            pages_fetched=pages_fetched,
            requests_made=requests_made,
            stop_reason=stop_reason,
        )

    @staticmethod
    def _next_page(page: int, max_pages: int, path: str) -> int:
        if page + 1 > max_pages:
            raise PageLimitExceeded(f"Hit page limit ({max_pages}) on {path}, stopping")
        return page + 1

    async def fetch_drawings(
        self,
        project_id: str,
        area_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> CrawlResult[Drawing]:
        Log.info(f"Starting drawing fetch for project {project_id} area {area_id}")
        return await self.crawl(
            endpoints.DRAWING_LOG.format(project_id=project_id, area_id=area_id),
            per_page=self._settings.drawings_per_page,
            normalize=normalize_drawings,
            max_pages=self._settings.max_pages,
            on_progress=on_progress,
        )

    async def fetch_rfis(
        self, project_id: str, on_progress: ProgressCallback | None = None
    ) -> CrawlResult[RFI]:
        return await self.crawl(
            endpoints.RFIS.format(project_id=project_id),
            per_page=self._settings.default_per_page,
            normalize=normalize_rfis,
            max_pages=self._settings.max_pages,
            on_progress=on_progress,
        )

    async def fetch_commitments(
        self, project_id: str, on_progress: ProgressCallback | None = None
    ) -> CrawlResult[Commitment]:
        """Crawl the three commitment endpoints in turn and dedupe by id."""
        crawls: list[CrawlResult[Commitment]] = []
        for template in endpoints.COMMITMENT_ENDPOINTS:
            crawls.append(
                await self.crawl(
                    template.format(project_id=project_id),
                    per_page=self._settings.default_per_page,
                    normalize=normalize_commitments,
                    max_pages=self._settings.commitment_max_pages,
                    on_progress=on_progress,
                )
            )
        combined = [record for crawl in crawls for record in crawl.records]
        reasons = {crawl.stop_reason for crawl in crawls}
        stop_reason: StopReason = "exhausted"
        if "errors" in reasons:
            stop_reason = "errors"
        elif "page_limit" in reasons:
            stop_reason = "page_limit"
        return CrawlResult(
            records=dedupe_by_id(combined),
            pages_fetched=sum(crawl.pages_fetched for crawl in crawls),
            requests_made=sum(crawl.requests_made for crawl in crawls),
            stop_reason=stop_reason,
        )

    async def fetch_specifications(
        self,
        company_id: str,
        project_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> CrawlResult[Specification]:
        return await self.crawl(
            endpoints.SPECIFICATION_SECTIONS.format(
                company_id=company_id, project_id=project_id
            ),
            per_page=self._settings.default_per_page,
            normalize=normalize_specifications,
            max_pages=self._settings.max_pages,
            on_progress=on_progress,
        )

    async def fetch_disciplines(self, project_id: str, area_id: str) -> LookupMap:
        """Single-shot lookup; an empty map means the lookup is unavailable."""
        path = endpoints.DRAWING_DISCIPLINES.format(project_id=project_id, area_id=area_id)
        try:
            payload = await self._client.get_json(path)
        except FetchError as exc:
            Log.error(f"Error fetching disciplines: {exc}")
            return EMPTY_LOOKUP
        return build_discipline_map(extract_items(payload))

    async def fetch_divisions(self, company_id: str, project_id: str) -> LookupMap:
        """One page of up to 100 divisions; empty map on any failure."""
        path = endpoints.SPECIFICATION_DIVISIONS.format(
            company_id=company_id, project_id=project_id
        )
        try:
            page = await self._client.get_page(
                path, {"per_page": self._settings.default_per_page}
            )
        except FetchError as exc:
            Log.error(f"Error fetching divisions: {exc}")
            return EMPTY_LOOKUP
        return build_division_map(page.items)

    async def fetch_drawing_areas(self, project_id: str) -> list[dict[str, Any]]:
        path = endpoints.DRAWING_AREAS.format(project_id=project_id)
        try:
            payload = await self._client.get_json(path)
        except FetchError as exc:
            Log.error(f"Error fetching drawing areas: {exc}")
            return []
        return [area for area in extract_items(payload) if isinstance(area, dict)]
