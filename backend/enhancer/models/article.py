"""Article model for harvested and enhanced blog posts."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Text
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


class Article(SQLModel, table=True):
    """
    Stored article - the original harvested content plus its enhancement.

    An article is created with is_enhanced=False and every enhancement field empty.
    The enhancement fields are written together in a single save, so is_enhanced
    is never True while enhanced_content is None.
    """

    __tablename__ = "articles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Original content
    title: str = Field(max_length=500)
    content: str = Field(sa_type=Text)
    excerpt: str = Field(default="", max_length=500)
    author: str | None = Field(default=None, max_length=200)
    image_url: str | None = Field(default=None, max_length=2048)
    source_url: str = Field(max_length=2048, unique=True, index=True)
    published_date: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    tags: list[str] = Field(default_factory=list, sa_type=JSON)

    # Enhancement
    enhanced_content: str | None = Field(default=None, sa_type=Text)
    enhanced_title: str | None = Field(default=None, max_length=500)
    references: list[dict[str, Any]] = Field(default_factory=list, sa_type=JSON)
    is_enhanced: bool = Field(default=False, index=True)
    enhanced_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))

    # Timestamps
    scraped_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
