"""Tests for article link discovery on listing pages."""

import pytest

from enhancer.agents.link_discovery import discover_links, is_article_url

HOST = "beyondchats.com"
BASE = "https://beyondchats.com/blogs/"


class TestIsArticleUrl:
    """Shape rules for a single-article URL."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://beyondchats.com/blogs/ai-chatbots-for-support/",
            "https://www.beyondchats.com/blogs/why-live-chat-matters",
            "https://beyondchats.com/blogs/2024/customer-service-tips/",
        ],
    )
    def test_accepts_article_shapes(self, url: str) -> None:
        assert is_article_url(url, HOST)

    @pytest.mark.parametrize(
        "url",
        [
            "https://beyondchats.com/blogs/",
            "https://beyondchats.com/blogs/tag/chatbots/",
            "https://beyondchats.com/blogs/category/ai-tools/",
            "https://beyondchats.com/blogs/page/2/",
            "https://beyondchats.com/blogs/search/live-chat/",
            "https://beyondchats.com/blogs/chatbots/",
            "https://beyondchats.com/blogs/a-b/",
            "https://beyondchats.com/blogs/ai-chatbots-for-support/?utm_source=x",
            "https://beyondchats.com/blogs/ai-chatbots-for-support/#comments",
            "https://beyondchats.com/news/ai-chatbots-for-support/",
            "https://example.com/blogs/ai-chatbots-for-support/",
            "https://com/blogs/ai-chatbots-for-support/",
            "https://shop.beyondchats.com/blogs/ai-chatbots-for-support/",
            "https://beyondchats.com.evil.net/blogs/ai-chatbots-for-support/",
            "mailto:team@beyondchats.com",
        ],
    )
    def test_rejects_non_article_shapes(self, url: str) -> None:
        assert not is_article_url(url, HOST)


class TestDiscoverLinks:
    """Listing page scanning."""

    def test_listing_with_tag_and_query_links(self) -> None:
        """Three article links plus a tag page and a query-string link yield three candidates."""
        markup = """
        <html><body>
          <a href="https://beyondchats.com/blogs/ai-chatbots-for-support/">One</a>
          <a href="/blogs/why-live-chat-matters/">Two</a>
          <a href="https://beyondchats.com/blogs/customer-service-automation/">Three</a>
          <a href="https://beyondchats.com/blogs/tag/chatbots/">Tag</a>
          <a href="https://beyondchats.com/blogs/ai-chatbots-for-support/?ref=home">Query</a>
        </body></html>
        """
        links = discover_links(markup, BASE, limit=10)

        assert links == [
            "https://beyondchats.com/blogs/ai-chatbots-for-support/",
            "https://beyondchats.com/blogs/why-live-chat-matters/",
            "https://beyondchats.com/blogs/customer-service-automation/",
        ]

    def test_duplicates_collapsed_in_first_seen_order(self) -> None:
        markup = """
        <a href="/blogs/second-article-here/">b</a>
        <a href="/blogs/first-article-here/">a</a>
        <a href="https://beyondchats.com/blogs/second-article-here/">b again</a>
        """
        links = discover_links(markup, BASE, limit=10)

        assert links == [
            "https://beyondchats.com/blogs/second-article-here/",
            "https://beyondchats.com/blogs/first-article-here/",
        ]

    def test_limit(self) -> None:
        markup = "".join(f'<a href="/blogs/article-number-{i}/">{i}</a>' for i in range(10))
        assert len(discover_links(markup, BASE, limit=4)) == 4
        assert discover_links(markup, BASE, limit=0) == []

    def test_ignores_empty_and_foreign_hrefs(self) -> None:
        markup = '<a href="">x</a><a>no href</a><a href="https://other.com/blogs/some-article/">y</a>'
        assert discover_links(markup, BASE, limit=5) == []
