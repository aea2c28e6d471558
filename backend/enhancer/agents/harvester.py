"""Article harvester - turns the blog listing page into RawArticle records."""

import asyncio
import logging
from collections.abc import Collection
from datetime import UTC, datetime

from pydantic import ValidationError

from enhancer.agents.extractor import ExtractedPage, TextExtractor
from enhancer.agents.link_discovery import discover_links
from enhancer.agents.page_fetcher import BrowserFetcher, FetcherFactory, HttpFetcher, PageFetcher
from enhancer.config import Settings, get_settings
from enhancer.errors import BrowserLaunchError, FetchError
from enhancer.schemas.article import MAX_AUTHOR_CHARS, RawArticle

logger = logging.getLogger(__name__)


class ArticleHarvester:
    """
    Discovers and extracts articles from the source blog.

    The primary strategy renders pages in a headless browser and runs a fixed
    number of fetch-and-extract workers that pull from a shared queue, so a worker
    finishing early immediately takes the next URL. If the browser cannot be
    launched or the listing page cannot be rendered, the harvest is retried once
    with plain HTTP requests and paragraph-only extraction.
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
        self.browser_factory = browser_factory or (lambda: BrowserFetcher(self.settings))
        self.http_factory = http_factory or (lambda: HttpFetcher(self.settings))

    async def harvest(self, count: int, skip_urls: Collection[str] = ()) -> list[RawArticle]:
        """
        Harvest up to `count` new articles.

        Args:
            count: Maximum number of articles to return
            skip_urls: Source URLs already known to storage; never fetched again

        Returns:
            Articles in arrival order, unique by source_url
        """
        logger.info("Harvesting up to %d articles from %s", count, self.settings.source_blog_url)
        try:
            articles = await self._harvest_rendered(count, skip_urls)
        except (BrowserLaunchError, FetchError) as e:
            logger.warning("Rendered harvest failed (%s); falling back to plain HTTP", e)
            articles = await self._harvest_plain(count, skip_urls)
        logger.info("Harvested %d articles", len(articles))
        return articles

    async def _discover(self, fetcher: PageFetcher, count: int, skip_urls: Collection[str]) -> list[str]:
        listing = await fetcher.fetch(self.settings.source_blog_url)
        skip = set(skip_urls)
        links = discover_links(
            listing.html,
            base_url=self.settings.source_blog_url,
            limit=count + self.settings.harvest_candidate_buffer + len(skip),
            path_prefix=self.settings.article_path_prefix,
            expected_host=self.settings.source_host,
        )
        candidates = [link for link in links if link not in skip]
        candidates = candidates[: count + self.settings.harvest_candidate_buffer]
        logger.info("Found %d candidate article links", len(candidates))
        return candidates

    async def _harvest_rendered(self, count: int, skip_urls: Collection[str]) -> list[RawArticle]:
        async with self.browser_factory() as fetcher:
            candidates = await self._discover(fetcher, count, skip_urls)
            return await self._run_pool(fetcher, candidates, count)

    async def _run_pool(self, fetcher: PageFetcher, candidates: list[str], count: int) -> list[RawArticle]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        for url in candidates:
            queue.put_nowait(url)

        articles: list[RawArticle] = []
        seen: set[str] = set()

        async def worker() -> None:
            while len(articles) < count:
                try:
                    url = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                article = await self._scrape_candidate(fetcher, url)
                if article is None or article.source_url in seen or len(articles) >= count:
                    continue
                seen.add(article.source_url)
                articles.append(article)
                logger.info("Got %r (%d chars)", article.title, len(article.content))

        width = max(1, min(self.settings.harvest_concurrency, len(candidates)))
        await asyncio.gather(*(worker() for _ in range(width)))
        return articles

    async def _harvest_plain(self, count: int, skip_urls: Collection[str]) -> list[RawArticle]:
        async with self.http_factory() as fetcher:
            try:
                candidates = await self._discover(fetcher, count, skip_urls)
            except FetchError as e:
                logger.error("Plain HTTP fallback failed: %s", e)
                return []

            articles: list[RawArticle] = []
            seen: set[str] = set()
            for url in candidates:
                if len(articles) >= count:
                    break
                article = await self._scrape_candidate(fetcher, url, paragraphs_only=True)
                if article is not None and article.source_url not in seen:
                    seen.add(article.source_url)
                    articles.append(article)
            return articles

    async def _scrape_candidate(
        self, fetcher: PageFetcher, url: str, paragraphs_only: bool = False
    ) -> RawArticle | None:
        """Fetch, extract and validate one candidate. Failures are logged and dropped."""
        try:
            page = await fetcher.fetch(url)
        except FetchError as e:
            logger.warning("Could not fetch %s: %s", url, e)
            return None

        extracted = self.extractor.extract_page(page.html, paragraphs_only=paragraphs_only)
        return self._build_article(url, extracted)

    def _build_article(self, url: str, extracted: ExtractedPage) -> RawArticle | None:
        if not extracted.title:
            logger.info("Skipping %s (no title)", url)
            return None
        # Thin pages are usually listing/search pages that slipped through discovery
        if extracted.text_length < self.settings.min_article_chars:
            logger.info(
                "Skipping %r (content too short: %d chars)", extracted.title, extracted.text_length
            )
            return None

        now = datetime.now(UTC)
        author = (extracted.author or self.settings.default_author)[:MAX_AUTHOR_CHARS].strip()
        try:
            return RawArticle(
                title=extracted.title,
                content=extracted.content_html,
                excerpt=extracted.excerpt,
                author=author,
                image_url=extracted.image_url,
                source_url=url,
                published_date=extracted.published_date or now,
                scraped_at=now,
            )
        except ValidationError as e:
            logger.warning("Invalid article at %s: %s", url, e)
            return None
