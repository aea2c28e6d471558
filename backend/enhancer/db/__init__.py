"""Database connections package."""

from enhancer.db.article_store import ArticleStore, SqlArticleStore
from enhancer.db.postgres import dispose_engine, get_engine, get_session_factory, init_db

__all__ = [
    "ArticleStore",
    "SqlArticleStore",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "init_db",
]
