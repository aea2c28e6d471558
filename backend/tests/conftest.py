"""Pytest fixtures for the enhancer tests.

Provides credential-free settings, in-memory fakes for storage and page fetching,
and a SQLite-backed article store. Nothing here touches the network or launches
a browser.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from enhancer.agents.page_fetcher import RenderedPage
from enhancer.config import Settings
from enhancer.db.article_store import SqlArticleStore
from enhancer.db.postgres import init_db
from enhancer.errors import BrowserLaunchError, DuplicateArticleError, FetchError, FetchErrorKind, PersistenceError
from enhancer.models.article import Article, utcnow
from enhancer.schemas.article import RawArticle

BLOG_URL = "https://beyondchats.com/blogs/"


def make_raw(slug: str, **overrides) -> RawArticle:
    data = {
        "title": slug.replace("-", " ").title(),
        "content": f"<p>Original content for {slug}.</p>",
        "excerpt": f"Excerpt for {slug}",
        "author": "BeyondChats Team",
        "source_url": f"{BLOG_URL}{slug}/",
        "published_date": datetime(2024, 1, 1, tzinfo=UTC),
    }
    data.update(overrides)
    return RawArticle(**data)


def make_article(slug: str, age_minutes: int = 0, **overrides) -> Article:
    """Stored article in its original state; larger age_minutes means older."""
    raw = make_raw(slug)
    data = {**raw.model_dump(), "created_at": utcnow() - timedelta(minutes=age_minutes)}
    data.update(overrides)
    return Article(**data)


def article_page(title: str, body: str) -> str:
    return f"""
    <html><head><title>{title} | Blog</title></head>
    <body>
      <nav><a href="/">Home</a></nav>
      <h1>{title}</h1>
      <article><p>{body}</p></article>
      <footer><p>Copyright BeyondChats. All rights reserved, every single one of them.</p></footer>
    </body></html>
    """


def listing_page(hrefs: list[str]) -> str:
    anchors = "\n".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><body><main>{anchors}</main></body></html>"


class FakeFetcher:
    """PageFetcher serving canned markup and recording every request."""

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        failures: dict[str, FetchErrorKind] | None = None,
        fail_on_enter: bool = False,
    ):
        self.pages = pages or {}
        self.failures = failures or {}
        self.fail_on_enter = fail_on_enter
        self.requested: list[str] = []
        self.entered = False
        self.exited = False
        self.in_flight = 0
        self.max_in_flight = 0

    async def __aenter__(self) -> "FakeFetcher":
        if self.fail_on_enter:
            raise BrowserLaunchError("Chromium not installed")
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.exited = True

    async def fetch(self, url: str) -> RenderedPage:
        self.requested.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so concurrent workers interleave
            await asyncio.sleep(0)
            if url in self.failures:
                raise FetchError(url, self.failures[url], "simulated")
            if url not in self.pages:
                raise FetchError(url, FetchErrorKind.NETWORK, "404")
            return RenderedPage(url=url, html=self.pages[url], status=200)
        finally:
            self.in_flight -= 1


class FakeStore:
    """In-memory article store; hands out copies like the SQL store does."""

    def __init__(self, articles: list[Article] | None = None, fail_save: bool = False, fail_reads: bool = False):
        self.articles: dict[UUID, Article] = {a.id: a for a in articles or []}
        self.fail_save = fail_save
        self.fail_reads = fail_reads
        self.saves: list[Article] = []
        self.inserts: list[RawArticle] = []

    @staticmethod
    def _copy(article: Article) -> Article:
        return Article(**article.model_dump())

    def _check_reads(self) -> None:
        if self.fail_reads:
            raise PersistenceError("database unavailable")

    async def find_pending(self, limit: int) -> list[Article]:
        self._check_reads()
        pending = sorted((a for a in self.articles.values() if not a.is_enhanced), key=lambda a: a.created_at)
        return [self._copy(a) for a in pending[:limit]]

    async def find_by_id(self, article_id: UUID) -> Article | None:
        self._check_reads()
        article = self.articles.get(article_id)
        return self._copy(article) if article else None

    async def find_by_source_url(self, source_url: str) -> Article | None:
        for article in self.articles.values():
            if article.source_url == source_url:
                return self._copy(article)
        return None

    async def list_source_urls(self) -> list[str]:
        return [a.source_url for a in self.articles.values()]

    async def insert(self, raw: RawArticle) -> Article:
        if await self.find_by_source_url(raw.source_url):
            raise DuplicateArticleError(raw.source_url)
        article = Article(**raw.model_dump())
        self.articles[article.id] = article
        self.inserts.append(raw)
        return self._copy(article)

    async def save(self, article: Article) -> Article:
        if self.fail_save:
            raise PersistenceError("write failed")
        self.saves.append(article)
        self.articles[article.id] = self._copy(article)
        return self._copy(article)

    async def list_articles(
        self, enhanced: bool | None = None, limit: int = 10, offset: int = 0
    ) -> tuple[list[Article], int]:
        self._check_reads()
        matching = [a for a in self.articles.values() if enhanced is None or a.is_enhanced == enhanced]
        matching.sort(key=lambda a: a.created_at, reverse=True)
        return [self._copy(a) for a in matching[offset : offset + limit]], len(matching)

    async def count_pending(self) -> int:
        self._check_reads()
        return sum(1 for a in self.articles.values() if not a.is_enhanced)

    async def reset_enhancements(self) -> int:
        for article in self.articles.values():
            article.is_enhanced = False
            article.enhanced_content = None
        return len(self.articles)

    async def delete_all(self) -> int:
        count = len(self.articles)
        self.articles.clear()
        return count


@pytest.fixture
def settings() -> Settings:
    """Settings with every provider key blank, so all fallbacks are active."""
    return Settings(
        _env_file=None,
        llm_provider="anthropic",
        anthropic_api_key="",
        gemini_api_key="",
        tavily_api_key="",
        google_search_api_key="",
        google_search_engine_id="",
        database_url="sqlite+aiosqlite://",
        source_blog_url=BLOG_URL,
        settle_delay_seconds=0,
        reference_settle_delay_seconds=0,
        enhancer_auto=False,
    )


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest_asyncio.fixture
async def sql_store():
    """SqlArticleStore over a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield SqlArticleStore(factory)
    await engine.dispose()
