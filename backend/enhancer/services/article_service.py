"""Article service for storing harvested articles."""

import logging

from enhancer.db.article_store import ArticleStore
from enhancer.errors import DuplicateArticleError, PersistenceError
from enhancer.models.article import Article
from enhancer.schemas.article import RawArticle

logger = logging.getLogger(__name__)


async def save_harvested_articles(store: ArticleStore, raw_articles: list[RawArticle]) -> list[Article]:
    """
    Insert harvested articles, skipping any source URL already stored.

    Storage errors on one article are logged and the rest are still attempted.
    """
    saved: list[Article] = []

    for raw in raw_articles:
        try:
            saved.append(await store.insert(raw))
            logger.info("Saved %r", raw.title)
        except DuplicateArticleError:
            logger.info("Already stored, skipping %s", raw.source_url)
        except PersistenceError as e:
            logger.error("Failed to save article %s: %s", raw.source_url, e)

    return saved
