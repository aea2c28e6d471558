"""Background jobs scheduled by the API and run by the CLI.

Nothing awaits these from a request, so failures are logged rather than raised;
progress is visible only through the stored articles.
"""

import logging
from uuid import UUID

from enhancer.agents.harvester import ArticleHarvester
from enhancer.config import Settings, get_settings
from enhancer.db.article_store import SqlArticleStore
from enhancer.errors import ArticleNotFoundError, EnhancerError
from enhancer.models.article import Article
from enhancer.services.article_service import save_harvested_articles
from enhancer.services.orchestrator import EnhancementOutcome
from enhancer.services.pipeline import open_pipeline

logger = logging.getLogger(__name__)


async def harvest_and_store(
    count: int,
    settings: Settings | None = None,
    store: SqlArticleStore | None = None,
) -> list[Article]:
    """Harvest new articles, store them, and optionally enhance the pending batch."""
    settings = settings or get_settings()
    store = store or SqlArticleStore()

    try:
        known_urls = await store.list_source_urls()
        raw_articles = await ArticleHarvester(settings).harvest(count, skip_urls=known_urls)
        saved = await save_harvested_articles(store, raw_articles)
    except EnhancerError as e:
        logger.error("Harvest job failed: %s", e)
        return []

    logger.info("Harvest job stored %d new articles", len(saved))

    if saved and settings.enhancer_auto:
        await run_enhancement_batch(settings=settings, store=store)
    return saved


async def run_enhancement_batch(
    settings: Settings | None = None,
    store: SqlArticleStore | None = None,
    max_batch: int | None = None,
) -> list[EnhancementOutcome]:
    settings = settings or get_settings()
    store = store or SqlArticleStore()

    try:
        async with open_pipeline(store, settings) as runner:
            return await runner.run(max_batch)
    except EnhancerError as e:
        logger.error("Enhancement batch failed: %s", e)
        return []


async def enhance_article(
    article_id: UUID,
    settings: Settings | None = None,
    store: SqlArticleStore | None = None,
) -> Article | None:
    settings = settings or get_settings()
    store = store or SqlArticleStore()

    try:
        async with open_pipeline(store, settings) as runner:
            return await runner.run_one(article_id)
    except ArticleNotFoundError as e:
        logger.warning("%s", e)
    except EnhancerError as e:
        logger.error("Enhancement of %s failed: %s", article_id, e)
    return None
