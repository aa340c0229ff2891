"""Feeds the host page's own network traffic into the interceptor."""

from playwright.async_api import Frame, Page, Response

from gridcapture.capture.interceptor import CaptureInterceptor


def attach_page(interceptor: CaptureInterceptor, page: Page) -> None:
    """Observe every response the page receives and track its current URL."""
    interceptor.page_url = page.url

    def on_navigated(frame: Frame) -> None:
        if frame == page.main_frame:
            interceptor.page_url = frame.url

    def on_response(response: Response) -> None:
        interceptor.observe(response.url, response.headers, response.body)

    page.on("framenavigated", on_navigated)
    page.on("response", on_response)
