import asyncio

import httpx
from playwright.async_api import BrowserContext, async_playwright

from gridcapture.capture.interceptor import CaptureInterceptor
from gridcapture.capture.page_tap import attach_page
from gridcapture.config.settings import Settings
from gridcapture.fetcher.client import ApiClient, build_http_client
from gridcapture.fetcher.fetcher import PaginatedFetcher
from gridcapture.fetcher.service import FetchService
from gridcapture.logging.logger import Log
from gridcapture.relay.bridge import RelayBridge
from gridcapture.relay.forwarder import CaptureForwarder, progress_publisher
from gridcapture.relay.handler import CommandHandler
from gridcapture.relay.messages import FETCH_RESOURCE, TRIGGER_SCAN, Message
from gridcapture.scan.factory import ScanSurfaceFactory
from gridcapture.scan.orchestrator import ScanOrchestrator


async def _browser_cookies(context: BrowserContext) -> httpx.Cookies:
    cookies = httpx.Cookies()
    for cookie in await context.cookies():
        cookies.set(cookie["name"], cookie["value"], domain=cookie["domain"], path=cookie["path"])
    return cookies


async def run(settings: Settings) -> None:
    """Open the authenticated browser, wire the pipeline and run one command."""
    async with async_playwright() as playwright:
        context = await playwright.chromium.launch_persistent_context(
            settings.browser_user_data_dir,
            headless=settings.browser_headless,
        )
        http: httpx.AsyncClient | None = None
        try:
            page = context.pages[0] if context.pages else await context.new_page()
            interceptor = CaptureInterceptor(settings.host_domain)
            attach_page(interceptor, page)
            if settings.start_url:
                await page.goto(settings.start_url, wait_until="domcontentloaded")

            bridge = RelayBridge()
            CaptureForwarder(bridge).attach(interceptor)
            surface = ScanSurfaceFactory.create(settings, page)
            orchestrator = ScanOrchestrator(surface, settings, progress_publisher(bridge))

            http = build_http_client(settings, interceptor, cookies=await _browser_cookies(context))
            fetcher = PaginatedFetcher(ApiClient(http), settings)
            handler = CommandHandler(
                orchestrator, FetchService(fetcher), interceptor, bridge, settings.host_domain
            )
            handler.attach()

            if settings.run_mode == "fetch":
                command = Message(type=FETCH_RESOURCE, payload={"resourceType": settings.run_target})
            else:
                command = Message(type=TRIGGER_SCAN, payload={"scanType": settings.run_target})
            response = await handler.handle(command)
            await interceptor.drain()
            await bridge.drain()
            Log.info(f"{command.type} finished: {response}")
        finally:
            if http is not None:
                await http.aclose()
            await context.close()


def main() -> None:
    """Entry point: load settings -> configure logging -> run one capture session."""
    settings = Settings()
    Log.configure(settings.log_level)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
