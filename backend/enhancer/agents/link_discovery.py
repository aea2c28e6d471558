"""Article link discovery for blog listing pages."""

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

EXCLUDED_SEGMENTS = {"tag", "category", "search", "author", "page"}
MIN_SLUG_LENGTH = 5
MIN_PATH_SEGMENTS = 2


def _host_matches(netloc: str, expected_host: str) -> bool:
    host = netloc.lower().split(":")[0]
    expected = expected_host.lower().split(":")[0]
    return host.removeprefix("www.") == expected.removeprefix("www.")


def is_article_url(url: str, expected_host: str, path_prefix: str = "/blogs/") -> bool:
    """
    Heuristic check that an absolute URL points at a single article.

    Listing, tag, category, search and root pages fail on one of: host, path
    prefix, segment count, query/fragment, or slug shape.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    if not _host_matches(parsed.netloc, expected_host):
        return False
    if not parsed.path.startswith(path_prefix):
        return False
    if parsed.query or parsed.fragment:
        return False

    segments = [s for s in parsed.path.split("/") if s]
    if len(segments) < MIN_PATH_SEGMENTS:
        return False
    if EXCLUDED_SEGMENTS.intersection(s.lower() for s in segments):
        return False

    slug = segments[-1]
    return "-" in slug and len(slug) >= MIN_SLUG_LENGTH


def discover_links(
    markup: str,
    base_url: str,
    limit: int,
    path_prefix: str = "/blogs/",
    expected_host: str | None = None,
) -> list[str]:
    """
    Extract candidate article URLs from a listing page.

    Args:
        markup: Listing page HTML
        base_url: URL the listing was fetched from (resolves relative hrefs)
        limit: Maximum number of URLs to return
        path_prefix: Path every article URL starts with
        expected_host: Host articles live on (defaults to the base URL's host)

    Returns:
        Deduplicated URLs in first-seen order
    """
    if limit <= 0:
        return []

    host = expected_host or urlparse(base_url).netloc
    soup = BeautifulSoup(markup or "", "lxml")
    links: list[str] = []
    seen: set[str] = set()

    for a in soup.find_all("a", href=True):
        if not isinstance(a, Tag):
            continue
        href = a.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        full_url = urljoin(base_url, href.strip())
        if full_url in seen or not is_article_url(full_url, host, path_prefix):
            continue
        seen.add(full_url)
        links.append(full_url)
        if len(links) >= limit:
            break

    return links
