"""Tests for reference search, result filtering and the mock fallback."""

import json

import httpx
import pytest

from enhancer.errors import SearchProviderError
from enhancer.schemas.reference import ReferenceCandidate
from enhancer.services.search_service import (
    MAX_RESULTS,
    MockSearchProvider,
    SearchService,
    WebSearchProvider,
    get_search_service,
    has_search_credentials,
)


class RecordingProvider:
    """Search provider returning canned results and remembering queries."""

    def __init__(self, results: list[ReferenceCandidate] | None = None, error: Exception | None = None):
        self.results = results or []
        self.error = error
        self.queries: list[str] = []

    async def search(self, query: str, num_results: int = 10) -> list[ReferenceCandidate]:
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.results

    async def close(self) -> None:
        return None


def candidate(link: str) -> ReferenceCandidate:
    return ReferenceCandidate(title=f"Result {link}", link=link, snippet="...")


class TestMockFallback:
    """Credential-free behaviour."""

    @pytest.mark.asyncio
    async def test_no_key_returns_fixed_mock_set(self, settings) -> None:
        """Without a provider key the two canned entries come back for any query."""
        service = get_search_service(settings)
        assert isinstance(service.provider, MockSearchProvider)

        first = await service.search("How chatbots help support teams")
        second = await service.search("something entirely different")

        assert first == second
        assert [c.link for c in first] == ["mock://article-1", "mock://article-2"]
        assert all(c.mock_content for c in first)

    @pytest.mark.asyncio
    async def test_provider_error_returns_mock_set(self, settings) -> None:
        service = SearchService(RecordingProvider(error=SearchProviderError("boom")), settings)

        results = await service.search("chatbots")

        assert [c.link for c in results] == ["mock://article-1", "mock://article-2"]

    def test_placeholder_keys_are_missing(self, settings) -> None:
        placeholder = settings.model_copy(update={"tavily_api_key": "your_tavily_api_key_here"})
        assert not has_search_credentials(placeholder)

        real = settings.model_copy(update={"tavily_api_key": "tvly-123"})
        assert has_search_credentials(real)
        assert isinstance(get_search_service(real).provider, WebSearchProvider)


class TestFiltering:
    """Query qualifier, blocklists and result cap."""

    @pytest.mark.asyncio
    async def test_query_qualifier_appended(self, settings) -> None:
        provider = RecordingProvider([candidate("https://blog.example.com/a-post")])

        await SearchService(provider, settings).search("AI chatbots")

        assert provider.queries == ["AI chatbots blog article"]

    @pytest.mark.asyncio
    async def test_blocked_and_origin_results_removed(self, settings) -> None:
        provider = RecordingProvider(
            [
                candidate("https://www.youtube.com/watch?v=abc"),
                candidate("https://www.linkedin.com/posts/someone_chatbots"),
                candidate("https://beyondchats.com/blogs/ai-chatbots-for-support/"),
                candidate("https://x.com/someone/status/1"),
                candidate("https://www.linux.com/chatbots-on-linux/"),
                candidate("https://www.linkedin.com/pulse/chatbot-article"),
                candidate(""),
            ]
        )

        results = await SearchService(provider, settings).search("chatbots")

        assert [c.link for c in results] == [
            "https://www.linux.com/chatbots-on-linux/",
            "https://www.linkedin.com/pulse/chatbot-article",
        ]

    @pytest.mark.asyncio
    async def test_results_capped(self, settings) -> None:
        provider = RecordingProvider([candidate(f"https://site{i}.example.com/post") for i in range(9)])

        results = await SearchService(provider, settings).search("chatbots")

        assert len(results) == MAX_RESULTS
        assert results[0].link == "https://site0.example.com/post"


class TestWebSearchProvider:
    """Tavily and Google Custom Search over a mocked transport."""

    def provider(self, settings, handler) -> WebSearchProvider:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        configured = settings.model_copy(
            update={
                "tavily_api_key": "tvly-123",
                "google_search_api_key": "g-key",
                "google_search_engine_id": "engine",
            }
        )
        return WebSearchProvider(configured, client=client)

    @pytest.mark.asyncio
    async def test_tavily_results(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "api.tavily.com"
            body = json.loads(request.content)
            assert body["query"] == "chatbots blog article"
            return httpx.Response(
                200,
                json={"results": [{"title": "A", "url": "https://a.example.com/post", "content": "snip"}]},
            )

        provider = self.provider(settings, handler)
        results = await provider.search("chatbots blog article", 5)
        await provider.close()

        assert results == [ReferenceCandidate(title="A", link="https://a.example.com/post", snippet="snip")]

    @pytest.mark.asyncio
    async def test_falls_through_to_google(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "api.tavily.com":
                return httpx.Response(500)
            assert request.url.params["cx"] == "engine"
            return httpx.Response(
                200,
                json={"items": [{"title": "G", "link": "https://g.example.com/post", "snippet": "s"}]},
            )

        provider = self.provider(settings, handler)
        results = await provider.search("chatbots", 5)

        assert [r.link for r in results] == ["https://g.example.com/post"]

    @pytest.mark.asyncio
    async def test_all_providers_failing_raises(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429)

        provider = self.provider(settings, handler)

        with pytest.raises(SearchProviderError):
            await provider.search("chatbots", 5)

    @pytest.mark.asyncio
    async def test_empty_tavily_answer_falls_through_to_google(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "api.tavily.com":
                return httpx.Response(200, json={"results": []})
            return httpx.Response(
                200,
                json={"items": [{"title": "G", "link": "https://g.example.com/post", "snippet": "s"}]},
            )

        provider = self.provider(settings, handler)
        results = await provider.search("chatbots", 5)

        assert [r.link for r in results] == ["https://g.example.com/post"]

    @pytest.mark.asyncio
    async def test_no_results_anywhere_is_empty_not_an_error(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "api.tavily.com":
                return httpx.Response(200, json={"results": []})
            return httpx.Response(200, json={"searchInformation": {"totalResults": "0"}})

        provider = self.provider(settings, handler)

        assert await provider.search("chatbots", 5) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"results": None},
            [{"title": "A", "url": "https://a.example.com/post"}],
            {"results": ["https://a.example.com/post"]},
        ],
    )
    async def test_malformed_payload_gives_mock_set(self, settings, payload) -> None:
        """A provider answering with an unexpected shape counts as a provider failure."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        keyed = settings.model_copy(update={"tavily_api_key": "tvly-123"})
        service = SearchService(WebSearchProvider(keyed, client=client), keyed)

        with pytest.raises(SearchProviderError):
            await service.provider.search("chatbots", 5)
        results = await service.search("chatbots")
        await service.close()

        assert [c.link for c in results] == ["mock://article-1", "mock://article-2"]
