"""Text extraction - locates the readable body of a rendered page.

The document is parsed once with BeautifulSoup. Noise (scripts, navigation,
footers, ads, comment sections, share widgets) is removed, then an ordered list of
content-region selectors is tried and the first region with enough text wins.
Extraction never raises: the worst case is an empty string.
"""

import html
import re
from dataclasses import dataclass, field
from datetime import datetime

from bs4 import BeautifulSoup, Tag

MAX_PLAIN_CHARS = 5000
MIN_REGION_CHARS = 200
MIN_PARAGRAPH_CHARS = 50
MIN_LETTER_RATIO = 0.4
MIN_HEADING_LETTER_RATIO = 0.5
MIN_BLOCKQUOTE_CHARS = 20
MIN_LIST_ITEM_CHARS = 5
MIN_FALLBACK_PARAGRAPH_CHARS = 40
BOILERPLATE_MAX_CHARS = 100
BYLINE_MAX_CHARS = 120

NOISE_TAGS = ["script", "style", "noscript", "iframe", "svg", "form", "nav", "header", "footer", "aside"]
NOISE_SELECTORS = [
    ".sidebar",
    ".widget-area",
    ".comments",
    "#comments",
    ".comment-respond",
    ".advertisement",
    ".ad",
    ".ads",
    ".social-share",
    ".share-buttons",
    ".sharedaddy",
    ".related-posts",
    ".cookie-notice",
    "#cookie-notice",
    "[role='navigation']",
]

# Ordered from most to least specific; the first match with enough text wins.
CONTENT_REGION_SELECTORS = [
    "[itemprop='articleBody']",
    ".elementor-widget-theme-post-content",
    "[data-widget_type='theme-post-content.default']",
    ".entry-content",
    ".post-content",
    ".article-content",
    ".blog-content",
    ".elementor-widget-text-editor",
    "article",
    ".prose",
    ".content",
    "main",
]

BLOCK_TAGS = ["h2", "h3", "h4", "p", "ul", "ol", "blockquote"]
CONTAINER_TAGS = {"ul", "ol", "blockquote"}
EXCLUDED_ANCESTOR_TAGS = {"header", "footer", "nav", "aside"}
EXCLUDED_ANCESTOR_CLASSES = {
    "sidebar",
    "widget-area",
    "related-posts",
    "comments",
    "elementor-widget-post-info",
}

BOILERPLATE_PHRASES = (
    "cookie",
    "privacy",
    "subscribe",
    "newsletter",
    "follow us",
    "share",
    "leave a reply",
    "related posts",
    "login",
    "register",
    "copyright",
    "all rights reserved",
    "no comments",
    "posted by",
    "written by",
    "author:",
    "category:",
    "tags:",
)
HEADING_NOISE = ("related", "comment", "share")

MONTHS = r"(jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
DATE_STAMP = re.compile(
    rf"^\s*(\d{{1,2}}[/.-]\d{{1,2}}[/.-]\d{{2,4}}|\d{{4}}-\d{{2}}-\d{{2}}|{MONTHS}\s+\d{{1,2}}(st|nd|rd|th)?,?\s+\d{{4}}|\d{{1,2}}\s+{MONTHS}\s+\d{{4}})",
    re.IGNORECASE,
)
METADATA_PREFIX = re.compile(
    r"^((posted|written|published|updated)\s+(by|on)\b|(author|category|categories|tags|filed under)\s*:)",
    re.IGNORECASE,
)
BYLINE = re.compile(r"^[Bb]y\s+[A-Z][\w.'-]*(\s+[A-Z][\w.'-]*){0,3}\s*([|,·•-]|$)")
WHITESPACE = re.compile(r"\s+")


@dataclass
class ExtractedPage:
    """Content and metadata pulled from one article page."""

    title: str
    content_html: str
    text: str
    excerpt: str = ""
    image_url: str | None = None
    author: str | None = None
    published_date: datetime | None = None
    blocks: list[tuple[str, str | list[str]]] = field(default_factory=list)

    @property
    def text_length(self) -> int:
        return len(self.text)


def normalize_whitespace(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def letter_ratio(text: str) -> float:
    if not text:
        return 0.0
    return sum(1 for ch in text if ch.isalpha()) / len(text)


def is_valid_paragraph(text: str) -> bool:
    """Reject short, low-density, metadata and boilerplate paragraphs."""
    if len(text) < MIN_PARAGRAPH_CHARS:
        return False
    if letter_ratio(text) < MIN_LETTER_RATIO:
        return False
    if DATE_STAMP.match(text) or METADATA_PREFIX.match(text):
        return False
    if len(text) < BYLINE_MAX_CHARS and BYLINE.match(text):
        return False
    lowered = text.lower()
    if len(text) < BOILERPLATE_MAX_CHARS and any(p in lowered for p in BOILERPLATE_PHRASES):
        return False
    # Template/code fragments leak through as text with braces
    if "{" in text or "}" in text:
        return False
    return True


def is_valid_heading(text: str) -> bool:
    if not 3 < len(text) < 200:
        return False
    if letter_ratio(text) <= MIN_HEADING_LETTER_RATIO:
        return False
    lowered = text.lower()
    return not any(word in lowered for word in HEADING_NOISE)


class TextExtractor:
    """Heuristic content extractor over a parsed document tree."""

    def __init__(
        self,
        region_selectors: list[str] | None = None,
        max_plain_chars: int = MAX_PLAIN_CHARS,
        min_region_chars: int = MIN_REGION_CHARS,
    ):
        self.region_selectors = region_selectors or CONTENT_REGION_SELECTORS
        self.max_plain_chars = max_plain_chars
        self.min_region_chars = min_region_chars

    def extract(self, markup: str, structured: bool = False) -> str:
        """
        Extract the main content of a page.

        Args:
            markup: Rendered HTML
            structured: Return headings/paragraphs/lists as HTML instead of plain text

        Returns:
            Plain text capped at max_plain_chars, or structured HTML
        """
        if structured:
            return self.extract_page(markup).content_html

        soup = self._parse(markup)
        self._strip_noise(soup)
        region = self._select_region(soup)
        if region is None:
            return ""
        return normalize_whitespace(region.get_text(" "))[: self.max_plain_chars]

    def extract_page(self, markup: str, paragraphs_only: bool = False) -> ExtractedPage:
        """
        Extract title, metadata and structured content from an article page.

        paragraphs_only switches to the simpler strategy used by the non-rendering
        fallback: every <p> longer than a minimum length, no region selection.
        """
        soup = self._parse(markup)
        title = self._extract_title(soup)
        excerpt = self._meta(soup, name="description") or self._meta(soup, prop="og:description") or ""
        image_url = self._meta(soup, prop="og:image")
        author = self._meta(soup, name="author")
        published_date = self._parse_date(self._meta(soup, prop="article:published_time"))

        self._strip_noise(soup)
        if paragraphs_only:
            blocks = self._paragraph_blocks(soup)
        else:
            region = self._select_region(soup)
            blocks = self._structured_blocks(region) if region is not None else []

        content_html = self._render_blocks(blocks)
        text = "\n".join(
            "\n".join(value) if isinstance(value, list) else value for _, value in blocks
        )
        if not content_html and excerpt:
            content_html = f"<p>{html.escape(excerpt, quote=False)}</p>"
            text = excerpt

        return ExtractedPage(
            title=title[:500],
            content_html=content_html,
            text=text,
            excerpt=excerpt[:500],
            image_url=image_url,
            author=author,
            published_date=published_date,
            blocks=blocks,
        )

    def _parse(self, markup: str) -> BeautifulSoup:
        soup = BeautifulSoup(markup or "", "lxml")
        for br in soup.find_all("br"):
            br.replace_with("\n")
        return soup

    def _strip_noise(self, soup: BeautifulSoup) -> None:
        """Remove non-content elements in place."""
        for tag in soup(NOISE_TAGS):
            tag.decompose()
        for selector in NOISE_SELECTORS:
            for node in soup.select(selector):
                if not node.decomposed:
                    node.decompose()

    def _select_region(self, soup: BeautifulSoup) -> Tag | None:
        for selector in self.region_selectors:
            for node in soup.select(selector):
                if len(normalize_whitespace(node.get_text(" "))) > self.min_region_chars:
                    return node
        return soup.body or soup

    def _structured_blocks(self, region: Tag) -> list[tuple[str, str | list[str]]]:
        blocks: list[tuple[str, str | list[str]]] = []
        seen: set[str] = set()

        for el in region.find_all(BLOCK_TAGS):
            if self._inside_container(el, region) or self._under_excluded_ancestor(el):
                continue
            tag = el.name

            if tag in ("ul", "ol"):
                items = []
                for li in el.find_all("li"):
                    item = normalize_whitespace(li.get_text())
                    if len(item) > MIN_LIST_ITEM_CHARS and item not in seen:
                        items.append(item)
                        seen.add(item)
                if items:
                    blocks.append((tag, items))
                continue

            text = normalize_whitespace(el.get_text())
            if not text or text in seen:
                continue

            if tag.startswith("h"):
                keep = is_valid_heading(text)
            elif tag == "p":
                keep = is_valid_paragraph(text)
            else:
                keep = len(text) > MIN_BLOCKQUOTE_CHARS

            if keep:
                seen.add(text)
                blocks.append((tag, text))

        return blocks

    def _paragraph_blocks(self, soup: BeautifulSoup) -> list[tuple[str, str | list[str]]]:
        blocks: list[tuple[str, str | list[str]]] = []
        for p in soup.find_all("p"):
            text = normalize_whitespace(p.get_text())
            if len(text) > MIN_FALLBACK_PARAGRAPH_CHARS:
                blocks.append(("p", text))
        return blocks

    @staticmethod
    def _inside_container(el: Tag, region: Tag) -> bool:
        """Nested blocks are emitted through their list/blockquote parent."""
        for parent in el.parents:
            if parent is region:
                return False
            if parent.name in CONTAINER_TAGS:
                return True
        return False

    @staticmethod
    def _under_excluded_ancestor(el: Tag) -> bool:
        for parent in el.parents:
            if not isinstance(parent, Tag):
                continue
            if parent.name in EXCLUDED_ANCESTOR_TAGS:
                return True
            classes = parent.get("class") or []
            if EXCLUDED_ANCESTOR_CLASSES.intersection(classes):
                return True
        return False

    @staticmethod
    def _render_blocks(blocks: list[tuple[str, str | list[str]]]) -> str:
        parts = []
        for tag, value in blocks:
            if isinstance(value, list):
                items = "".join(f"  <li>{html.escape(item, quote=False)}</li>\n" for item in value)
                parts.append(f"<{tag}>\n{items}</{tag}>\n")
            else:
                parts.append(f"<{tag}>{html.escape(value, quote=False)}</{tag}>\n")
        return "".join(parts)

    @staticmethod
    def _extract_title(soup: BeautifulSoup) -> str:
        h1 = soup.find("h1")
        if h1:
            title = normalize_whitespace(h1.get_text())
            if title:
                return title
        og_title = TextExtractor._meta(soup, prop="og:title")
        if og_title:
            return og_title
        if soup.title and soup.title.string:
            return normalize_whitespace(soup.title.string)
        return ""

    @staticmethod
    def _meta(soup: BeautifulSoup, name: str | None = None, prop: str | None = None) -> str | None:
        attrs = {"name": name} if name else {"property": prop}
        tag = soup.find("meta", attrs=attrs)
        if isinstance(tag, Tag):
            content = tag.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
        return None

    @staticmethod
    def _parse_date(value: str | None) -> datetime | None:
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
