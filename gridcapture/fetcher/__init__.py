from gridcapture.fetcher.client import ApiClient, build_http_client
from gridcapture.fetcher.fetcher import CrawlResult, PaginatedFetcher
from gridcapture.fetcher.service import FetchOutcome, FetchService

__all__ = [
    "ApiClient",
    "CrawlResult",
    "FetchOutcome",
    "FetchService",
    "PaginatedFetcher",
    "build_http_client",
]
