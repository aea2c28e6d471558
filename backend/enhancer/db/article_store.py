"""Article storage - the only component that reads or writes Article rows."""

import logging
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from enhancer.db.postgres import get_session_factory
from enhancer.errors import DuplicateArticleError, PersistenceError
from enhancer.models.article import Article, utcnow
from enhancer.schemas.article import RawArticle

logger = logging.getLogger(__name__)


class ArticleStore(Protocol):
    """Storage operations the enhancement pipeline depends on."""

    async def find_pending(self, limit: int) -> list[Article]: ...

    async def find_by_id(self, article_id: UUID) -> Article | None: ...

    async def find_by_source_url(self, source_url: str) -> Article | None: ...

    async def insert(self, raw: RawArticle) -> Article: ...

    async def save(self, article: Article) -> Article: ...


class SqlArticleStore:
    """
    ArticleStore backed by SQLModel/SQLAlchemy asyncio.

    Every call runs in its own short session, so returned articles are detached
    working copies. SQLAlchemy errors surface as PersistenceError, unique-key
    violations on insert as DuplicateArticleError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self.session_factory = session_factory or get_session_factory()

    async def find_pending(self, limit: int) -> list[Article]:
        """Unenhanced articles, oldest first."""
        query = (
            select(Article)
            .where(Article.is_enhanced == False)  # noqa: E712
            .order_by(Article.created_at.asc())
            .limit(limit)
        )
        return await self._fetch_all(query)

    async def find_by_id(self, article_id: UUID) -> Article | None:
        return await self._fetch_one(select(Article).where(Article.id == article_id))

    async def find_by_source_url(self, source_url: str) -> Article | None:
        return await self._fetch_one(select(Article).where(Article.source_url == source_url))

    async def list_source_urls(self) -> list[str]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Article.source_url))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list source URLs: {e}") from e

    async def insert(self, raw: RawArticle) -> Article:
        """
        Store a newly harvested article in its original (unenhanced) state.

        Raises:
            DuplicateArticleError: source_url is already stored
            PersistenceError: any other storage failure
        """
        article = Article(**raw.model_dump())
        try:
            async with self.session_factory() as session:
                session.add(article)
                await session.commit()
        except IntegrityError as e:
            raise DuplicateArticleError(raw.source_url) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to insert {raw.source_url}: {e}") from e
        return article

    async def save(self, article: Article) -> Article:
        """
        Full-document upsert; every column is written in one transaction.

        Raises:
            PersistenceError: the write failed and nothing was committed
        """
        try:
            async with self.session_factory() as session:
                merged = await session.merge(article)
                await session.commit()
                return merged
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save article {article.id}: {e}") from e

    async def list_articles(
        self, enhanced: bool | None = None, limit: int = 10, offset: int = 0
    ) -> tuple[list[Article], int]:
        """Newest-first page of articles plus the total matching count."""
        query = select(Article)
        count_query = select(func.count()).select_from(Article)
        if enhanced is not None:
            query = query.where(Article.is_enhanced == enhanced)
            count_query = count_query.where(Article.is_enhanced == enhanced)
        query = query.order_by(Article.created_at.desc()).offset(offset).limit(limit)

        try:
            async with self.session_factory() as session:
                total = (await session.execute(count_query)).scalar_one()
                result = await session.execute(query)
                return list(result.scalars().all()), total
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list articles: {e}") from e

    async def count_pending(self) -> int:
        query = select(func.count()).select_from(Article).where(Article.is_enhanced == False)  # noqa: E712
        try:
            async with self.session_factory() as session:
                return (await session.execute(query)).scalar_one()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count pending articles: {e}") from e

    async def reset_enhancements(self) -> int:
        """Return every article to its original state. Returns rows affected."""
        statement = update(Article).values(
            is_enhanced=False,
            enhanced_content=None,
            enhanced_title=None,
            references=[],
            enhanced_at=None,
            updated_at=utcnow(),
        )
        count = await self._execute(statement)
        logger.info("Reset enhancement on %d articles", count)
        return count

    async def delete_all(self) -> int:
        count = await self._execute(delete(Article))
        logger.info("Deleted %d articles", count)
        return count

    async def _fetch_all(self, query: Any) -> list[Article]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Article query failed: {e}") from e

    async def _fetch_one(self, query: Any) -> Article | None:
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Article query failed: {e}") from e

    async def _execute(self, statement: Any) -> int:
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(f"Article update failed: {e}") from e
