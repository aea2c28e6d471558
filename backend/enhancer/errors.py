"""Exception taxonomy for the harvest and enhancement pipelines."""

from enum import Enum


class EnhancerError(Exception):
    """Base class for all pipeline errors."""


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"


class FetchError(EnhancerError):
    """A page could not be fetched or rendered."""

    def __init__(self, url: str, kind: FetchErrorKind, message: str = ""):
        self.url = url
        self.kind = kind
        super().__init__(f"{kind.value} fetching {url}: {message}" if message else f"{kind.value} fetching {url}")


class BrowserLaunchError(EnhancerError):
    """The headless browser could not be started."""


class ExtractionError(EnhancerError):
    """Not raised: extraction degrades to best-effort text."""


class SearchProviderError(EnhancerError):
    """The web search provider failed or returned an unusable payload."""


class RewriteErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


class RewriteProviderError(EnhancerError):
    """The generative model call failed."""

    def __init__(self, kind: RewriteErrorKind, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.value)


class DuplicateArticleError(EnhancerError):
    """An article with the same source URL is already stored."""

    def __init__(self, source_url: str):
        self.source_url = source_url
        super().__init__(f"Article already exists: {source_url}")


class PersistenceError(EnhancerError):
    """A storage read or write failed."""


class ArticleNotFoundError(EnhancerError):
    """No article exists for the given id."""
