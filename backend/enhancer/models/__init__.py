"""Models package - SQLModel database models."""

from enhancer.models.article import Article

__all__ = ["Article"]
