"""Pipeline runner - enhances pending articles in bounded, sequential batches."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from enhancer.agents.rewriter import get_rewriter
from enhancer.config import Settings, get_settings
from enhancer.db.article_store import ArticleStore
from enhancer.errors import ArticleNotFoundError
from enhancer.models.article import Article
from enhancer.services.orchestrator import EnhancementOrchestrator, EnhancementOutcome, EnhancementState
from enhancer.services.reference_collector import ReferenceCollector
from enhancer.services.search_service import get_search_service

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Selects pending articles and runs the orchestrator over each, one at a time."""

    def __init__(
        self,
        store: ArticleStore,
        orchestrator: EnhancementOrchestrator,
        settings: Settings | None = None,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.settings = settings or get_settings()

    async def run(self, max_batch: int | None = None) -> list[EnhancementOutcome]:
        """
        Enhance up to `max_batch` pending articles, oldest first.

        A failure on one article is logged and the batch moves on.
        """
        limit = max_batch if max_batch is not None else self.settings.max_pending_batch
        pending = await self.store.find_pending(limit)
        if not pending:
            logger.info("No pending articles to enhance")
            return []

        logger.info("Found %d articles to enhance", len(pending))
        outcomes: list[EnhancementOutcome] = []
        for stale in pending:
            try:
                # Another run may have enhanced it since the batch was read
                article = await self.store.find_by_id(stale.id)
                if article is None:
                    logger.warning("Article %s disappeared before enhancement", stale.id)
                    continue
                outcomes.append(await self.orchestrator.enhance(article))
            except Exception:
                logger.exception("Enhancement failed for article %s", stale.id)

        saved = sum(1 for o in outcomes if o.state is EnhancementState.SAVED)
        logger.info("Enhancement batch complete: %d of %d saved", saved, len(pending))
        return outcomes

    async def run_one(self, article_id: UUID) -> Article:
        """
        Enhance a single article on demand.

        Returns:
            The article as stored after the run

        Raises:
            ArticleNotFoundError: no article with this id
        """
        article = await self.store.find_by_id(article_id)
        if article is None:
            raise ArticleNotFoundError(f"Article not found: {article_id}")
        if article.is_enhanced:
            logger.info("Article %s already enhanced", article_id)
            return article

        outcome = await self.orchestrator.enhance(article)
        logger.info("Article %s finished in state %s", article_id, outcome.state.value)
        return await self.store.find_by_id(article_id) or article


@asynccontextmanager
async def open_pipeline(store: ArticleStore, settings: Settings | None = None) -> AsyncIterator[PipelineRunner]:
    """Wire a runner with the configured search and rewrite providers."""
    settings = settings or get_settings()
    search_service = get_search_service(settings)
    try:
        orchestrator = EnhancementOrchestrator(
            store=store,
            search_service=search_service,
            collector=ReferenceCollector(settings),
            rewriter=get_rewriter(settings),
            settings=settings,
        )
        yield PipelineRunner(store, orchestrator, settings)
    finally:
        await search_service.close()
