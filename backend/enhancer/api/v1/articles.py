"""Articles API endpoints - read stored articles and schedule harvest/enhancement jobs."""

import math
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status

from enhancer.config import Settings, get_settings
from enhancer.db.article_store import SqlArticleStore
from enhancer.schemas.article import ActionResponse, ArticleListResponse, ArticleResponse, ScrapeRequest
from enhancer.services import jobs

router = APIRouter()


def get_article_store() -> SqlArticleStore:
    """Dependency for the article store."""
    return SqlArticleStore()


def _page(articles: list, total: int, page: int, limit: int) -> ArticleListResponse:
    return ArticleListResponse(
        count=len(articles),
        total=total,
        page=page,
        pages=math.ceil(total / limit) if total else 0,
        data=[ArticleResponse.model_validate(a) for a in articles],
    )


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    enhanced: bool | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    store: SqlArticleStore = Depends(get_article_store),
) -> ArticleListResponse:
    """
    List articles, newest first.

    - enhanced: only enhanced (true) or only original (false) articles
    """
    articles, total = await store.list_articles(enhanced=enhanced, limit=limit, offset=(page - 1) * limit)
    return _page(articles, total, page, limit)


@router.get("/pending", response_model=ArticleListResponse)
async def list_pending(
    limit: int = Query(default=50, ge=1, le=100),
    store: SqlArticleStore = Depends(get_article_store),
) -> ArticleListResponse:
    """Articles still waiting for enhancement."""
    articles, total = await store.list_articles(enhanced=False, limit=limit)
    return _page(articles, total, 1, limit)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: UUID,
    store: SqlArticleStore = Depends(get_article_store),
) -> ArticleResponse:
    """Get a specific article by ID."""
    article = await store.find_by_id(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return ArticleResponse.model_validate(article)


@router.post("/scrape", response_model=ActionResponse, status_code=status.HTTP_202_ACCEPTED)
async def trigger_scrape(
    request: ScrapeRequest,
    background_tasks: BackgroundTasks,
    store: SqlArticleStore = Depends(get_article_store),
    settings: Settings = Depends(get_settings),
) -> ActionResponse:
    """Harvest new articles from the source blog in the background."""
    background_tasks.add_task(jobs.harvest_and_store, request.count, settings, store)
    return ActionResponse(
        message=f"Harvest of up to {request.count} articles started in background",
        data={"count": request.count, "auto_enhance": settings.enhancer_auto},
    )


@router.post("/enhance-all", response_model=ActionResponse, status_code=status.HTTP_202_ACCEPTED)
async def enhance_all(
    response: Response,
    background_tasks: BackgroundTasks,
    store: SqlArticleStore = Depends(get_article_store),
    settings: Settings = Depends(get_settings),
) -> ActionResponse:
    """Enhance the next batch of pending articles in the background."""
    pending = await store.count_pending()
    if pending == 0:
        response.status_code = status.HTTP_200_OK
        return ActionResponse(message="No pending articles to enhance", data={"pending": 0})

    background_tasks.add_task(jobs.run_enhancement_batch, settings, store)
    return ActionResponse(
        message="Enhancement started in background",
        data={"pending": pending, "batch_size": min(pending, settings.max_pending_batch)},
    )


@router.post("/{article_id}/enhance", response_model=ActionResponse, status_code=status.HTTP_202_ACCEPTED)
async def enhance_one(
    article_id: UUID,
    response: Response,
    background_tasks: BackgroundTasks,
    store: SqlArticleStore = Depends(get_article_store),
    settings: Settings = Depends(get_settings),
) -> ActionResponse:
    """Enhance a single article in the background."""
    article = await store.find_by_id(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")

    if article.is_enhanced:
        response.status_code = status.HTTP_200_OK
        return ActionResponse(message="Article already enhanced", data=ArticleResponse.model_validate(article))

    background_tasks.add_task(jobs.enhance_article, article.id, settings, store)
    return ActionResponse(message="Enhancement started in background", data={"id": str(article.id)})
