"""Article schemas for harvest records and API responses."""

from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

MAX_AUTHOR_CHARS = 200


class RawArticle(BaseModel):
    """An article discovered by the harvester, not yet stored."""

    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    excerpt: str = Field(default="", max_length=500)
    author: str | None = Field(default=None, max_length=MAX_AUTHOR_CHARS)
    image_url: str | None = None
    source_url: str = Field(..., description="Absolute URL of the original article")
    published_date: datetime | None = None
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    tags: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("source_url")
    @classmethod
    def source_url_absolute(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("source_url must be an absolute http(s) URL")
        return value


class ReferenceSummary(BaseModel):
    """Citation persisted on an enhanced article."""

    title: str
    url: str
    source: str


class ArticleResponse(BaseModel):
    """Schema for article responses."""

    id: UUID
    title: str
    content: str
    excerpt: str = ""
    author: str | None = None
    image_url: str | None = None
    source_url: str
    published_date: datetime | None = None
    tags: list[str] = []
    enhanced_content: str | None = None
    enhanced_title: str | None = None
    references: list[ReferenceSummary] = []
    is_enhanced: bool
    enhanced_at: datetime | None = None
    scraped_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class ArticleListResponse(BaseModel):
    """Schema for paginated article list response."""

    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    data: list[ArticleResponse]


class ScrapeRequest(BaseModel):
    """Body for triggering a background harvest."""

    count: int = Field(default=5, ge=1, le=50)


class ActionResponse(BaseModel):
    """Acknowledgement for work scheduled in the background."""

    success: bool = True
    message: str
    data: Any = None
