"""Page fetchers - headless rendering with a plain HTTP fallback.

BrowserFetcher owns one Chromium instance for the lifetime of an `async with`
block and opens an isolated browser context per URL, closed on every exit path.
HttpFetcher issues plain GET requests and is used when rendering is unavailable
for a whole batch.
"""

import asyncio
import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Callable, Protocol

import httpx
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from enhancer.config import Settings, get_settings
from enhancer.errors import BrowserLaunchError, FetchError, FetchErrorKind

logger = logging.getLogger(__name__)

BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]


@dataclass
class RenderedPage:
    """Markup of a fetched page."""

    url: str
    html: str
    status: int | None = None


class PageFetcher(Protocol):
    async def __aenter__(self) -> "PageFetcher": ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    async def fetch(self, url: str) -> RenderedPage: ...


FetcherFactory = Callable[[], PageFetcher]


class BrowserFetcher:
    """Renders pages in headless Chromium via Playwright."""

    def __init__(
        self,
        settings: Settings | None = None,
        timeout_seconds: float | None = None,
        settle_delay_seconds: float | None = None,
    ):
        self.settings = settings or get_settings()
        self.timeout_seconds = timeout_seconds or self.settings.page_timeout_seconds
        self.settle_delay_seconds = (
            settle_delay_seconds
            if settle_delay_seconds is not None
            else self.settings.settle_delay_seconds
        )
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "BrowserFetcher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Launch Playwright + Chromium once for this fetcher."""
        if self._browser is not None:
            return
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.browser_headless,
                args=BROWSER_ARGS,
            )
        except Exception as e:
            await self.close()
            raise BrowserLaunchError(f"Failed to launch Chromium: {e}") from e
        logger.debug("Chromium launched")

    async def fetch(self, url: str) -> RenderedPage:
        """Render a URL and return its markup after the settle delay."""
        if self._browser is None:
            raise BrowserLaunchError("BrowserFetcher used before start()")

        timeout_ms = int(self.timeout_seconds * 1000)
        try:
            context = await self._browser.new_context(user_agent=self.settings.user_agent)
        except PlaywrightError as e:
            raise FetchError(url, FetchErrorKind.NETWORK, str(e)) from e

        try:
            page = await context.new_page()
            page.set_default_timeout(timeout_ms)
            response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            try:
                await page.wait_for_load_state("networkidle", timeout=timeout_ms)
            except PlaywrightTimeoutError:
                # Long-polling and beacons keep some pages from ever going idle
                logger.debug("%s never reached network idle, using the loaded DOM", url)
            # Client-side frameworks keep painting after the network goes quiet
            await asyncio.sleep(self.settle_delay_seconds)
            html = await page.content()
            return RenderedPage(
                url=page.url,
                html=html,
                status=response.status if response else None,
            )
        except PlaywrightTimeoutError as e:
            raise FetchError(url, FetchErrorKind.TIMEOUT, str(e)) from e
        except PlaywrightError as e:
            raise FetchError(url, FetchErrorKind.NETWORK, str(e)) from e
        finally:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.warning("Error closing browser context for %s: %s", url, e)

    async def close(self) -> None:
        """Close the browser and Playwright driver."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.warning("Error closing browser: %s", e)
            self._browser = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning("Error stopping Playwright: %s", e)
            self._playwright = None


class HttpFetcher:
    """Fetches raw markup with httpx, without running JavaScript."""

    def __init__(
        self,
        settings: Settings | None = None,
        timeout_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.http = client or httpx.AsyncClient(
            timeout=timeout_seconds or self.settings.http_timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": self.settings.user_agent},
        )

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def fetch(self, url: str) -> RenderedPage:
        try:
            response = await self.http.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(url, FetchErrorKind.TIMEOUT, str(e)) from e
        except httpx.HTTPError as e:
            raise FetchError(url, FetchErrorKind.NETWORK, str(e)) from e
        return RenderedPage(url=str(response.url), html=response.text, status=response.status_code)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http.aclose()
