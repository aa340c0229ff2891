from dataclasses import dataclass, field
from typing import Literal

from gridcapture.fetcher.fetcher import PaginatedFetcher, ProgressCallback
from gridcapture.logging.logger import Log
from gridcapture.normalization.models import EMPTY_LOOKUP, CanonicalRecord, LookupMap

ResourceType = Literal["drawings", "rfis", "commitments", "specifications"]
RESOURCE_TYPES: tuple[ResourceType, ...] = ("drawings", "rfis", "commitments", "specifications")


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one consumer-issued crawl."""

    success: bool
    kind: str
    records: list[CanonicalRecord] = field(default_factory=list)
    lookup: LookupMap = field(default_factory=lambda: EMPTY_LOOKUP)
    partial: bool = False
    error: str | None = None


class FetchService:
    """Resolves path parameters and runs the crawl for one resource type."""

    def __init__(self, fetcher: PaginatedFetcher) -> None:
        self._fetcher = fetcher

    async def run(
        self,
        resource_type: str,
        project_id: str | None,
        *,
        area_id: str | None = None,
        company_id: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> FetchOutcome:
        if resource_type not in RESOURCE_TYPES:
            return FetchOutcome(
                success=False,
                kind=resource_type,
                error=f"Unknown resource type '{resource_type}'. Choose from: {list(RESOURCE_TYPES)}",
            )
        if not project_id:
            return FetchOutcome(success=False, kind=resource_type, error="No project ID provided")

        Log.info(f"Fetching {resource_type} for project {project_id}")
        if resource_type == "drawings":
            return await self._drawings(project_id, area_id, on_progress)
        if resource_type == "specifications":
            return await self._specifications(project_id, company_id, on_progress)
        if resource_type == "rfis":
            crawl = await self._fetcher.fetch_rfis(project_id, on_progress)
        else:
            crawl = await self._fetcher.fetch_commitments(project_id, on_progress)
        return FetchOutcome(
            success=True,
            kind=resource_type,
            records=list(crawl.records),
            partial=crawl.partial,
        )

    async def _drawings(
        self,
        project_id: str,
        area_id: str | None,
        on_progress: ProgressCallback | None,
    ) -> FetchOutcome:
        if not area_id:
            areas = await self._fetcher.fetch_drawing_areas(project_id)
            if areas and areas[0].get("id") is not None:
                area_id = str(areas[0]["id"])
        if not area_id:
            return FetchOutcome(success=False, kind="drawings", error="No drawing area found")

        lookup = await self._fetcher.fetch_disciplines(project_id, area_id)
        crawl = await self._fetcher.fetch_drawings(project_id, area_id, on_progress)
        Log.info(f"Fetched {len(crawl.records)} drawings, {len(lookup)} disciplines")
        return FetchOutcome(
            success=True,
            kind="drawings",
            records=list(crawl.records),
            lookup=lookup,
            partial=crawl.partial,
        )

    async def _specifications(
        self,
        project_id: str,
        company_id: str | None,
        on_progress: ProgressCallback | None,
    ) -> FetchOutcome:
        if not company_id:
            return FetchOutcome(
                success=False, kind="specifications", error="No company ID provided"
            )
        lookup = await self._fetcher.fetch_divisions(company_id, project_id)
        crawl = await self._fetcher.fetch_specifications(company_id, project_id, on_progress)
        Log.info(f"Fetched {len(crawl.records)} specifications, {len(lookup)} divisions")
        return FetchOutcome(
            success=True,
            kind="specifications",
            records=list(crawl.records),
            lookup=lookup,
            partial=crawl.partial,
        )
