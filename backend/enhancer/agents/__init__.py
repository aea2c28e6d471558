"""Agents package - page fetching, extraction, harvesting and AI rewriting."""

from enhancer.agents.extractor import ExtractedPage, TextExtractor
from enhancer.agents.harvester import ArticleHarvester
from enhancer.agents.link_discovery import discover_links, is_article_url
from enhancer.agents.page_fetcher import BrowserFetcher, HttpFetcher, PageFetcher, RenderedPage
from enhancer.agents.rewriter import (
    ClaudeRewriter,
    GeminiRewriter,
    MockRewriter,
    Rewriter,
    get_rewriter,
)

__all__ = [
    # Harvest
    "ArticleHarvester",
    "discover_links",
    "is_article_url",
    "TextExtractor",
    "ExtractedPage",
    # Fetching
    "PageFetcher",
    "BrowserFetcher",
    "HttpFetcher",
    "RenderedPage",
    # Rewriting
    "Rewriter",
    "ClaudeRewriter",
    "GeminiRewriter",
    "MockRewriter",
    "get_rewriter",
]
