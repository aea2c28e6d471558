"""Rewrite agents - turn an original article plus references into enhanced HTML.

Three strategies share one interface and are chosen once by get_rewriter():
Claude (default), Gemini, or a deterministic mock used when no key is configured.
Model strategies fall back to the mock output on rate-limit/quota errors and
return None on any other provider error.
"""

import html
import logging
import re
from abc import ABC, abstractmethod

import anthropic
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from enhancer.config import Settings, get_settings, has_credential
from enhancer.errors import RewriteErrorKind, RewriteProviderError
from enhancer.schemas.reference import Reference

logger = logging.getLogger(__name__)

MAX_ORIGINAL_CHARS = 3000
MAX_REFERENCE_EXCERPT_CHARS = 1500

SYSTEM_PROMPT = (
    "You are a professional content writer who creates high-quality, engaging blog "
    "articles. Always respond with well-formatted HTML content."
)

REWRITE_PROMPT = """Rewrite and improve the blog article below.

Goals:
1. Improve the structure and formatting
2. Make the content more engaging and informative
3. Bring in relevant insights from the reference articles
4. Keep the core message and facts of the original
5. Use proper headings, bullet points and paragraphs
6. Make it SEO-friendly

Rules:
- Answer in HTML using <h2>, <h3>, <p>, <ul>, <ol>, <li> tags
- Do NOT add a references section, it is appended separately
- Keep a professional, authoritative tone

ORIGINAL ARTICLE:
Title: {title}
Content: {content}

REFERENCE ARTICLES FOR STYLE AND CONTENT IDEAS:
{references}

Enhanced article (HTML only):"""

MOCK_INTRO = (
    "<p><em>This article has been enhanced with additional insights and improved "
    "formatting for better readability.</em></p>\n\n"
)

BLOCK_PATTERN = re.compile(
    r"(<h[234][^>]*>.*?</h[234]>|<p>.*?</p>|<ul>.*?</ul>|<ol>.*?</ol>)",
    re.IGNORECASE | re.DOTALL,
)
SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
QUOTA_HINT = re.compile(r"\b(quota|rate[ _-]?limit|resource_exhausted)", re.IGNORECASE)


def clean_text(text: str) -> str:
    """Strip tags, stray attributes and template fragments from an HTML snippet."""
    if not text:
        return ""
    text = re.sub(r"<[^>]*>", " ", text)
    text = re.sub(r'[a-z-]+="[^"]*"', "", text, flags=re.IGNORECASE)
    text = re.sub(r"\{[^}]*\}", "", text)
    return re.sub(r"\s+", " ", text).strip()


def build_prompt(title: str, content: str, references: list[Reference], max_references: int) -> str:
    ref_content = "\n\n---\n\n".join(
        f"Reference Article {i} ({ref.source}):\n{ref.content[:MAX_REFERENCE_EXCERPT_CHARS]}"
        for i, ref in enumerate(references[:max_references], start=1)
    )
    return REWRITE_PROMPT.format(
        title=title,
        content=content[:MAX_ORIGINAL_CHARS],
        references=ref_content,
    )


def render_references_block(references: list[Reference]) -> str:
    """Citation list appended to every rewrite, one link per reference in input order."""
    if not references:
        return ""
    items = "".join(
        f'  <li><a href="{html.escape(ref.url)}" target="_blank" rel="noopener noreferrer">'
        f"{html.escape(ref.title, quote=False)}</a> - {html.escape(ref.source, quote=False)}</li>\n"
        for ref in references
    )
    return f"\n\n<hr/>\n<h3>References &amp; Further Reading</h3>\n<ul>\n{items}</ul>\n"


def mock_rewrite(title: str, content: str, references: list[Reference]) -> str:
    """
    Deterministic template rewrite.

    Re-segments the original into headings, paragraphs and lists and re-emits them
    with fixed editorial insertions. The same input always yields the same bytes.
    """
    parts = [f"<h2>{html.escape(title, quote=False)}</h2>\n\n", MOCK_INTRO]
    emitted_paragraphs = 0

    if content:
        has_headings = re.search(r"<h[23]", content, re.IGNORECASE) is not None
        original_paragraphs = 0

        for section in BLOCK_PATTERN.split(content):
            trimmed = section.strip()
            if not trimmed:
                continue
            lowered = trimmed.lower()
            if re.match(r"<h[234]", lowered):
                parts.append(f"\n{trimmed}\n")
            elif lowered.startswith("<p>"):
                parts.append(f"{trimmed}\n")
                original_paragraphs += 1
                emitted_paragraphs += 1
                if original_paragraphs == 3 and not has_headings:
                    parts.append("\n<h3>Key Insights</h3>\n")
            elif lowered.startswith(("<ul>", "<ol>")):
                parts.append(f"{trimmed}\n")
            else:
                cleaned = clean_text(trimmed)
                if len(cleaned) > 30:
                    parts.append(f"<p>{cleaned}</p>\n")
                    emitted_paragraphs += 1

        # Unstructured input: regroup sentences into paragraphs
        if emitted_paragraphs == 0 or len("".join(parts)) < 200:
            sentences = [s for s in SENTENCE_SPLIT.split(clean_text(content)) if len(s) > 20]
            for i in range(0, len(sentences), 3):
                group = " ".join(sentences[i : i + 3])
                if len(group) > 30:
                    parts.append(f"<p>{group}</p>\n")
                if i == 0 and len(sentences) > 4:
                    parts.append("\n<h3>Main Content</h3>\n")

    parts.append("\n<h3>Summary</h3>\n")
    parts.append(
        f'<p>This enhanced version of "{html.escape(title, quote=False)}" provides comprehensive '
        "insights on the topic. The content has been structured for improved readability while "
        "keeping all the essential information from the original article.</p>\n"
    )
    parts.append(render_references_block(references))
    return "".join(parts)


def strip_code_fences(text: str) -> str:
    """Models sometimes wrap HTML in ```html fences."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    return text.strip()


class Rewriter(ABC):
    """Produces enhanced HTML for an article, or None if it cannot."""

    @abstractmethod
    async def rewrite(self, title: str, content: str, references: list[Reference]) -> str | None: ...


class MockRewriter(Rewriter):
    """Credential-free rewriter with byte-for-byte reproducible output."""

    async def rewrite(self, title: str, content: str, references: list[Reference]) -> str:
        logger.info("Generating mock rewrite for %r", title)
        return mock_rewrite(title, content, references)


class ModelRewriter(Rewriter):
    """Shared prompt building and error policy for generative model rewriters."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.fallback = MockRewriter()

    async def rewrite(self, title: str, content: str, references: list[Reference]) -> str | None:
        prompt = build_prompt(title, content, references, self.settings.max_references)
        try:
            generated = await self._generate(prompt)
        except RewriteProviderError as e:
            if e.kind is RewriteErrorKind.RATE_LIMITED:
                logger.warning("Model quota/rate limit hit (%s), using mock rewrite", e)
                return await self.fallback.rewrite(title, content, references)
            logger.error("Model rewrite failed: %s", e)
            return None

        body = strip_code_fences(generated)
        if not body:
            logger.error("Model returned an empty rewrite for %r", title)
            return None
        return body + render_references_block(references)

    @abstractmethod
    async def _generate(self, prompt: str) -> str:
        """Call the model; raise RewriteProviderError on failure."""


class ClaudeRewriter(ModelRewriter):
    """Rewriter backed by the Anthropic Messages API."""

    def __init__(self, settings: Settings | None = None, client: anthropic.AsyncAnthropic | None = None):
        super().__init__(settings)
        self.client = client or anthropic.AsyncAnthropic(api_key=self.settings.anthropic_api_key)

    @retry(
        retry=retry_if_exception_type(anthropic.APIConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _call_claude(self, prompt: str) -> str:
        """Call Claude API with retry logic for connection errors."""
        response = await self.client.messages.create(
            model=self.settings.anthropic_model,
            max_tokens=self.settings.rewrite_max_tokens,
            temperature=self.settings.rewrite_temperature,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(block.text for block in response.content if block.type == "text")

    async def _generate(self, prompt: str) -> str:
        try:
            return await self._call_claude(prompt)
        except anthropic.RateLimitError as e:
            raise RewriteProviderError(RewriteErrorKind.RATE_LIMITED, str(e)) from e
        except anthropic.APIStatusError as e:
            kind = RewriteErrorKind.RATE_LIMITED if QUOTA_HINT.search(str(e)) else RewriteErrorKind.OTHER
            raise RewriteProviderError(kind, str(e)) from e
        except anthropic.APIError as e:
            raise RewriteProviderError(RewriteErrorKind.OTHER, str(e)) from e


class GeminiRewriter(ModelRewriter):
    """Rewriter backed by Google's Gemini model."""

    def __init__(self, settings: Settings | None = None, client: genai.Client | None = None):
        super().__init__(settings)
        self.client = client or genai.Client(api_key=self.settings.gemini_api_key)

    async def _generate(self, prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.settings.gemini_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_PROMPT,
                    temperature=self.settings.rewrite_temperature,
                    max_output_tokens=self.settings.rewrite_max_tokens,
                ),
            )
        except genai_errors.APIError as e:
            rate_limited = e.code == 429 or QUOTA_HINT.search(str(e)) is not None
            kind = RewriteErrorKind.RATE_LIMITED if rate_limited else RewriteErrorKind.OTHER
            raise RewriteProviderError(kind, str(e)) from e
        except httpx.HTTPError as e:
            raise RewriteProviderError(RewriteErrorKind.OTHER, f"Gemini transport error: {e}") from e
        return response.text or ""


def get_rewriter(settings: Settings | None = None) -> Rewriter:
    """Get rewriter based on configured LLM provider and available credentials."""
    settings = settings or get_settings()

    if settings.llm_provider == "gemini":
        if has_credential(settings.gemini_api_key):
            return GeminiRewriter(settings)
    elif has_credential(settings.anthropic_api_key):
        return ClaudeRewriter(settings)

    logger.info("No %s API key configured, using mock rewriter", settings.llm_provider)
    return MockRewriter()
