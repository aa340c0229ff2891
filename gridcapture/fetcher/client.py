import json
from collections.abc import Mapping
from typing import Any

import httpx

from gridcapture.capture.interceptor import (
    CaptureInterceptor,
    is_json_content,
    read_pagination_headers,
)
from gridcapture.capture.transport import InterceptingTransport
from gridcapture.config.settings import Settings
from gridcapture.fetcher.exceptions import DecodeError, TransientFetchError
from gridcapture.logging.logger import Log
from gridcapture.normalization.models import ResourcePage
from gridcapture.normalization.normalizer import extract_items


class ApiClient:
    """Authenticated JSON GETs against the host application's REST API."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def get_json(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET a JSON document.

        Raises:
            TransientFetchError: on network failure or an error status.
            DecodeError: when the body is not JSON.
        """
        response = await self._get(path, params)
        return self._decode(response)

    async def get_page(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> ResourcePage:
        """GET one page of a paginated collection, reading the total/per-page headers."""
        response = await self._get(path, params)
        payload = self._decode(response)
        pagination = read_pagination_headers(response.headers)
        return ResourcePage(
            items=extract_items(payload),
            total=pagination.total,
            per_page=pagination.per_page,
        )

    async def _get(self, path: str, params: Mapping[str, Any] | None) -> httpx.Response:
        Log.debug(f"GET {path}", params=dict(params or {}))
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            raise TransientFetchError(f"Request to {path} failed: {exc}") from exc
        if response.is_error:
            raise TransientFetchError(
                f"API error {response.status_code} {response.reason_phrase} for {path}"
            )
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not is_json_content(response.headers):
            raise DecodeError(
                f"Expected JSON from {response.request.url}, "
                f"got '{response.headers.get('content-type', '')}'"
            )
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(f"Invalid JSON from {response.request.url}: {exc}") from exc


def build_http_client(
    settings: Settings,
    interceptor: CaptureInterceptor,
    cookies: httpx.Cookies | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared async client; every response passes the interceptor."""
    return httpx.AsyncClient(
        base_url=settings.base_url,
        headers={"Accept": "application/json"},
        cookies=cookies,
        timeout=settings.http_timeout_seconds,
        transport=InterceptingTransport(interceptor, inner=transport),
        follow_redirects=True,
    )
