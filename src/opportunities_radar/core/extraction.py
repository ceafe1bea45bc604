"""Main-content extraction from fetched HTML.

Site-specific strategies are plain functions registered by name. Each takes
the parsed document and returns text, or ``None`` when it does not apply.
Anything without a matching strategy goes through trafilatura's readability
extraction and, failing that, the visible body text.
"""

import hashlib
from typing import Callable, Optional

import trafilatura
from bs4 import BeautifulSoup, Tag

SECTION_SEPARATOR = "\n\n---\n\n"

# Elements that never carry main content
NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "header"]

Strategy = Callable[[BeautifulSoup], Optional[str]]


def _text(element: Tag) -> str:
    return element.get_text("\n", strip=True)


def _join_all(selector: str, separator: str = SECTION_SEPARATOR) -> Strategy:
    """Strategy joining the text of every element matching ``selector``."""

    def strategy(document: BeautifulSoup) -> Optional[str]:
        elements = document.select(selector)
        if not elements:
            return None
        texts = [_text(el) for el in elements]
        return separator.join(text for text in texts if text)

    return strategy


def _first(selector: str) -> Strategy:
    """Strategy returning the text of the first element matching ``selector``."""

    def strategy(document: BeautifulSoup) -> Optional[str]:
        element = document.select_one(selector)
        if element is None:
            return None
        return _text(element) or None

    return strategy


EXTRACTORS: dict[str, Strategy] = {
    # Paragraph.xyz blog posts
    "paragraph": _join_all("article"),
    # CharmVerse grant pages
    "charmverse": _first('[data-testid="page-content"]'),
    "base-blog": _join_all('[class*="post"], [class*="article"]'),
    "farcaster-blog": _first("main"),
    "notion": _join_all('[class*="notion-block"]', separator="\n"),
    # Snapshot governance proposals
    "snapshot": _join_all('[class*="proposal"]'),
    "discourse": _join_all(".topic-list-item, .topic-body"),
    "purple": _first('[class*="content"], main'),
}


def extract_with_strategy(html: str, extractor: str) -> Optional[str]:
    """Run a named strategy; ``None`` if unknown or not applicable."""
    strategy = EXTRACTORS.get(extractor)
    if strategy is None:
        return None
    return strategy(BeautifulSoup(html, "html.parser")) or None


def extract_readable(html: str) -> Optional[str]:
    """Generic readability-style extraction of the main article text."""
    extracted = trafilatura.extract(
        html,
        include_comments=False,
        include_tables=True,
        output_format="txt",
    )
    if extracted and extracted.strip():
        return extracted.strip()
    return None


def extract_body_text(html: str) -> str:
    """Visible document text with non-content elements removed."""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup
    for element in root.find_all(NON_CONTENT_TAGS):
        element.extract()
    return _text(root)


def extract_content(html: str, extractor: Optional[str] = None) -> str:
    """Extract normalized plain text from raw HTML.

    Args:
        html: Raw markup as fetched
        extractor: Optional strategy name from ``EXTRACTORS``

    Returns:
        Trimmed text; empty string when nothing could be extracted
    """
    if extractor:
        content = extract_with_strategy(html, extractor)
        if content:
            return content.strip()

    content = extract_readable(html)
    if content:
        return content

    return extract_body_text(html).strip()


def hash_content(content: str) -> str:
    """SHA-256 fingerprint of extracted text, hex encoded."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
