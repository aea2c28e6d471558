"""Reference material used when rewriting an article."""

from dataclasses import dataclass

MOCK_LINK_PREFIX = "mock://"
MOCK_SOURCE_LABEL = "mock-reference"


@dataclass
class ReferenceCandidate:
    """A search hit that may become a reference."""

    title: str
    link: str
    snippet: str = ""
    mock_content: str | None = None

    @property
    def is_mock(self) -> bool:
        return self.mock_content is not None or self.link.startswith(MOCK_LINK_PREFIX)


@dataclass
class Reference:
    """A resolved reference with extracted text."""

    title: str
    url: str
    source: str
    content: str

    def summary(self) -> dict[str, str]:
        """Fields persisted on the owning article."""
        return {"title": self.title, "url": self.url, "source": self.source}
