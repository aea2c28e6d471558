"""Reference collector - resolves search candidates into reference texts."""

import logging
from contextlib import AsyncExitStack
from urllib.parse import urlparse

from enhancer.agents.extractor import TextExtractor
from enhancer.agents.page_fetcher import BrowserFetcher, FetcherFactory, HttpFetcher, PageFetcher
from enhancer.config import Settings, get_settings
from enhancer.errors import BrowserLaunchError, EnhancerError
from enhancer.schemas.reference import MOCK_SOURCE_LABEL, Reference, ReferenceCandidate

logger = logging.getLogger(__name__)

MIN_REFERENCE_CHARS = 100


class ReferenceCollector:
    """
    Fetches and extracts up to N reference articles, in candidate order.

    Mock candidates are used as-is. A browser is only launched when at least one
    real candidate needs fetching, and it is shared by the whole call; if it cannot
    be launched the call uses plain HTTP instead.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        extractor: TextExtractor | None = None,
        browser_factory: FetcherFactory | None = None,
        http_factory: FetcherFactory | None = None,
    ):
        self.settings = settings or get_settings()
        self.extractor = extractor or TextExtractor()
        self.browser_factory = browser_factory or (
            lambda: BrowserFetcher(
                self.settings,
                timeout_seconds=self.settings.reference_timeout_seconds,
                settle_delay_seconds=self.settings.reference_settle_delay_seconds,
            )
        )
        self.http_factory = http_factory or (lambda: HttpFetcher(self.settings))

    async def collect(
        self, candidates: list[ReferenceCandidate], max_references: int | None = None
    ) -> list[Reference]:
        """
        Resolve the first `max_references` candidates.

        Returns:
            References that yielded enough text; failures are logged and skipped
        """
        limit = max_references if max_references is not None else self.settings.max_references
        references: list[Reference] = []

        async with AsyncExitStack() as stack:
            fetcher: PageFetcher | None = None
            for candidate in candidates[:limit]:
                if candidate.is_mock:
                    if candidate.mock_content:
                        references.append(
                            Reference(
                                title=candidate.title,
                                url=candidate.link,
                                source=MOCK_SOURCE_LABEL,
                                content=candidate.mock_content.strip(),
                            )
                        )
                    else:
                        logger.info("Skipping mock candidate without content: %s", candidate.link)
                    continue

                if fetcher is None:
                    fetcher = await self._open_fetcher(stack)
                reference = await self._resolve(fetcher, candidate)
                if reference is not None:
                    references.append(reference)

        logger.info("Collected %d of %d references", len(references), min(limit, len(candidates)))
        return references

    async def _open_fetcher(self, stack: AsyncExitStack) -> PageFetcher:
        try:
            return await stack.enter_async_context(self.browser_factory())
        except BrowserLaunchError as e:
            logger.warning("Browser unavailable for references (%s); using plain HTTP", e)
            return await stack.enter_async_context(self.http_factory())

    async def _resolve(self, fetcher: PageFetcher, candidate: ReferenceCandidate) -> Reference | None:
        try:
            page = await fetcher.fetch(candidate.link)
        except EnhancerError as e:
            logger.warning("Reference scrape failed for %s: %s", candidate.link, e)
            return None

        content = self.extractor.extract(page.html)
        if len(content) < MIN_REFERENCE_CHARS:
            logger.info("Discarding %s (only %d chars extracted)", candidate.link, len(content))
            return None

        return Reference(
            title=candidate.title,
            url=candidate.link,
            source=urlparse(candidate.link).netloc,
            content=content,
        )
