from collections.abc import AsyncIterator, Callable

import httpx

from gridcapture.capture.interceptor import CaptureInterceptor


class _RecordingStream(httpx.AsyncByteStream):
    """Passes chunks through untouched and reports the full body on close."""

    def __init__(
        self, inner: httpx.AsyncByteStream, on_complete: Callable[[bytes], None]
    ) -> None:
        self._inner = inner
        self._on_complete = on_complete
        self._chunks: list[bytes] = []
        self._finished = False
        self._reported = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._inner:
            self._chunks.append(chunk)
            yield chunk
        self._finished = True

    async def aclose(self) -> None:
        await self._inner.aclose()
        if self._finished and not self._reported:
            self._reported = True
            self._on_complete(b"".join(self._chunks))


class InterceptingTransport(httpx.AsyncBaseTransport):
    """Wraps an async transport and feeds relevant responses to the interceptor.

    The response object handed back is the inner transport's own; only its
    byte stream is wrapped, so callers see identical status, headers, body
    and timing. Capture happens once the caller has consumed the body.
    """

    def __init__(
        self,
        interceptor: CaptureInterceptor,
        inner: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._interceptor = interceptor
        self._inner = inner if inner is not None else httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        response = await self._inner.handle_async_request(request)
        url = str(request.url)
        if not self._interceptor.accepts(url, response.headers):
            return response

        headers = response.headers.copy()
        try:
            preloaded = response.content
        except httpx.ResponseNotRead:
            response.stream = _RecordingStream(
                response.stream,
                lambda raw: self._observe_raw(url, response.status_code, headers, raw),
            )
        else:
            self._observe_decoded(url, headers, preloaded)
        return response

    def _observe_raw(
        self, url: str, status_code: int, headers: httpx.Headers, raw: bytes
    ) -> None:
        async def read_body() -> bytes:
            # Re-wrapping applies any content-encoding declared in headers.
            return httpx.Response(status_code, headers=headers, content=raw).content

        self._interceptor.observe(url, headers, read_body)

    def _observe_decoded(self, url: str, headers: httpx.Headers, body: bytes) -> None:
        async def read_body() -> bytes:
            return body

        self._interceptor.observe(url, headers, read_body)

    async def aclose(self) -> None:
        await self._inner.aclose()
