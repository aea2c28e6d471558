"""Search Service for finding reference articles."""

import logging
from typing import Any, Protocol
from urllib.parse import urlparse

import httpx

from enhancer.config import Settings, get_settings, has_credential
from enhancer.constants.mock_references import mock_candidates
from enhancer.errors import SearchProviderError
from enhancer.schemas.reference import ReferenceCandidate

logger = logging.getLogger(__name__)

QUERY_QUALIFIER = "blog article"
MAX_RESULTS = 5
PROVIDER_RESULTS = 10

# Video/social platforms never yield a readable article
BLOCKED_DOMAINS = (
    "youtube.com",
    "youtu.be",
    "facebook.com",
    "twitter.com",
    "x.com",
    "pinterest.com",
    "instagram.com",
    "tiktok.com",
    "reddit.com",
)
BLOCKED_URL_PARTS = ("linkedin.com/posts",)


def _on_domain(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def _result_items(data: Any, key: str) -> list[dict[str, Any]]:
    """Result objects from a provider payload; a missing key means no results."""
    if not isinstance(data, dict):
        raise SearchProviderError(f"unexpected payload type {type(data).__name__}")
    items = data.get(key, [])
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise SearchProviderError(f"malformed {key!r} in search payload")
    return items


def has_search_credentials(settings: Settings) -> bool:
    """True if Tavily or Google Custom Search is configured."""
    google = has_credential(settings.google_search_api_key) and bool(settings.google_search_engine_id)
    return has_credential(settings.tavily_api_key) or google


class SearchProvider(Protocol):
    async def search(self, query: str, num_results: int) -> list[ReferenceCandidate]: ...

    async def close(self) -> None: ...


class MockSearchProvider:
    """Returns the fixed mock result set; never calls out."""

    async def search(self, query: str, num_results: int = PROVIDER_RESULTS) -> list[ReferenceCandidate]:
        logger.info("Using mock search results for %r", query)
        return mock_candidates()

    async def close(self) -> None:
        return None


class WebSearchProvider:
    """Web search using Tavily, then the Google Custom Search API."""

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or get_settings()
        self.http_client = client or httpx.AsyncClient(
            timeout=10.0,
            headers={"User-Agent": self.settings.user_agent},
            follow_redirects=True,
        )

    @property
    def has_tavily(self) -> bool:
        return has_credential(self.settings.tavily_api_key)

    @property
    def has_google(self) -> bool:
        return has_credential(self.settings.google_search_api_key) and bool(
            self.settings.google_search_engine_id
        )

    async def search(self, query: str, num_results: int = PROVIDER_RESULTS) -> list[ReferenceCandidate]:
        """
        Search for a query and return candidates with title, link, snippet.
        Prioritizes Tavily -> Google API; an empty answer falls through to the next provider.

        Raises:
            SearchProviderError: if every configured provider failed
        """
        errors: list[str] = []
        answered = False

        if self.has_tavily:
            try:
                results = await self._search_tavily(query, num_results)
                answered = True
                if results:
                    return results
            except (httpx.HTTPError, ValueError, SearchProviderError) as e:
                logger.warning("Tavily search failed: %s", e)
                errors.append(f"tavily: {e}")

        if self.has_google:
            try:
                results = await self._search_google_api(query, num_results)
                answered = True
                if results:
                    return results
            except (httpx.HTTPError, ValueError, SearchProviderError) as e:
                logger.warning("Google API search failed: %s", e)
                errors.append(f"google: {e}")

        if answered:
            return []
        raise SearchProviderError("; ".join(errors) or "no search provider configured")

    async def _search_tavily(self, query: str, num: int) -> list[ReferenceCandidate]:
        """Use Tavily Search API."""
        url = "https://api.tavily.com/search"
        payload = {
            "api_key": self.settings.tavily_api_key,
            "query": query,
            "search_depth": "basic",
            "max_results": num,
        }

        resp = await self.http_client.post(url, json=payload)
        resp.raise_for_status()

        return [
            ReferenceCandidate(
                title=item.get("title") or "",
                link=item.get("url") or "",
                snippet=item.get("content") or "",
            )
            for item in _result_items(resp.json(), "results")
        ]

    async def _search_google_api(self, query: str, num: int) -> list[ReferenceCandidate]:
        """Use Google Custom Search JSON API."""
        url = "https://www.googleapis.com/customsearch/v1"
        params = {
            "key": self.settings.google_search_api_key,
            "cx": self.settings.google_search_engine_id,
            "q": query,
            "num": min(num, 10),  # API limits to 10 per request
        }

        resp = await self.http_client.get(url, params=params)
        resp.raise_for_status()

        return [
            ReferenceCandidate(
                title=item.get("title") or "",
                link=item.get("link") or "",
                snippet=item.get("snippet") or "",
            )
            for item in _result_items(resp.json(), "items")
        ]

    async def close(self) -> None:
        await self.http_client.aclose()


class SearchService:
    """Turns an article title into ranked reference candidates."""

    def __init__(self, provider: SearchProvider, settings: Settings | None = None):
        self.provider = provider
        self.settings = settings or get_settings()

    async def search(self, query: str) -> list[ReferenceCandidate]:
        """
        Search for articles competing with the given title.

        Provider failures are absorbed: the caller gets the mock result set instead.
        """
        search_query = f"{query} {QUERY_QUALIFIER}"
        try:
            results = await self.provider.search(search_query, PROVIDER_RESULTS)
        except SearchProviderError as e:
            logger.error("Search failed, using mock results: %s", e)
            return mock_candidates()

        filtered = [r for r in results if r.link and self._is_allowed(r.link)]
        logger.info("Search for %r: %d results, %d after filtering", query, len(results), len(filtered))
        return filtered[:MAX_RESULTS]

    def _is_allowed(self, link: str) -> bool:
        lowered = link.lower()
        if any(part in lowered for part in BLOCKED_URL_PARTS):
            return False
        host = urlparse(lowered).netloc.split(":")[0]
        if any(_on_domain(host, domain) for domain in BLOCKED_DOMAINS):
            return False
        origin = self.settings.source_host.removeprefix("www.")
        return not _on_domain(host, origin)

    async def close(self) -> None:
        await self.provider.close()


def get_search_service(settings: Settings | None = None) -> SearchService:
    """Build a SearchService, choosing the real or mock provider once."""
    settings = settings or get_settings()
    if has_search_credentials(settings):
        return SearchService(WebSearchProvider(settings), settings)
    logger.info("No search API key configured, using mock search provider")
    return SearchService(MockSearchProvider(), settings)
