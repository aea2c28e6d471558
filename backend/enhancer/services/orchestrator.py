"""Enhancement orchestrator - drives one article from pending to enhanced or skipped."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from enhancer.agents.rewriter import Rewriter
from enhancer.config import Settings, get_settings
from enhancer.db.article_store import ArticleStore
from enhancer.errors import PersistenceError
from enhancer.models.article import Article, utcnow
from enhancer.services.reference_collector import ReferenceCollector
from enhancer.services.search_service import SearchService

logger = logging.getLogger(__name__)


class EnhancementState(str, Enum):
    PENDING = "pending"
    SEARCHING = "searching"
    COLLECTING = "collecting"
    REWRITING = "rewriting"
    SAVED = "saved"
    SKIPPED = "skipped"


@dataclass
class EnhancementOutcome:
    """Where one enhancement run ended, and how it got there."""

    article_id: UUID
    state: EnhancementState = EnhancementState.PENDING
    reason: str = ""
    history: list[EnhancementState] = field(default_factory=lambda: [EnhancementState.PENDING])
    article: Article | None = None

    def advance(self, state: EnhancementState, reason: str = "") -> "EnhancementOutcome":
        self.state = state
        self.reason = reason
        self.history.append(state)
        return self


class EnhancementOrchestrator:
    """
    Search -> collect -> rewrite -> save for a single article.

    Any stage that yields nothing usable ends the run as SKIPPED without touching
    storage. The only write is the final save, which sets every enhancement field
    at once. Already-enhanced articles are never rewritten.
    """

    def __init__(
        self,
        store: ArticleStore,
        search_service: SearchService,
        collector: ReferenceCollector,
        rewriter: Rewriter,
        settings: Settings | None = None,
    ):
        self.store = store
        self.search_service = search_service
        self.collector = collector
        self.rewriter = rewriter
        self.settings = settings or get_settings()

    async def enhance(self, article: Article) -> EnhancementOutcome:
        """
        Run the enhancement state machine on a freshly fetched article.

        Args:
            article: Working copy; it is never mutated

        Returns:
            Outcome in state SAVED, SKIPPED, or PENDING (save failed, retry next run)
        """
        outcome = EnhancementOutcome(article_id=article.id)

        if article.is_enhanced:
            logger.info("Article %s already enhanced, skipping", article.id)
            return outcome.advance(EnhancementState.SKIPPED, "already enhanced")

        logger.info("Enhancing %r", article.title)

        outcome.advance(EnhancementState.SEARCHING)
        candidates = await self.search_service.search(article.title)
        if not candidates:
            logger.warning("No search results for %r", article.title)
            return outcome.advance(EnhancementState.SKIPPED, "no search results")

        outcome.advance(EnhancementState.COLLECTING)
        references = await self.collector.collect(candidates, self.settings.max_references)
        if not references:
            logger.warning("No references collected for %r", article.title)
            return outcome.advance(EnhancementState.SKIPPED, "no references collected")

        outcome.advance(EnhancementState.REWRITING)
        enhanced_html = await self.rewriter.rewrite(article.title, article.content, references)
        if not enhanced_html:
            logger.warning("Rewrite produced no content for %r", article.title)
            return outcome.advance(EnhancementState.SKIPPED, "rewrite failed")

        now = utcnow()
        enhanced = Article(
            **{
                **article.model_dump(),
                "enhanced_content": enhanced_html,
                "enhanced_title": article.title,
                "references": [ref.summary() for ref in references],
                "is_enhanced": True,
                "enhanced_at": now,
                "updated_at": now,
            }
        )
        try:
            outcome.article = await self.store.save(enhanced)
        except PersistenceError as e:
            logger.error("Could not save enhancement for %s: %s", article.id, e)
            return outcome.advance(EnhancementState.PENDING, "save failed")

        logger.info("Enhanced %r with %d references", article.title, len(references))
        return outcome.advance(EnhancementState.SAVED)
