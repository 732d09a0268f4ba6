"""Main-text extraction from article pages."""
from __future__ import annotations

import logging
import re

import httpx
from bs4 import BeautifulSoup

from trend_engine.errors import SourceUnavailableError

from .interest_source import USER_AGENT

logger = logging.getLogger(__name__)

MAX_CHARS = 8000
MIN_CONTAINER_CHARS = 200
FALLBACK_PARAGRAPHS = 10

_NOISE_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "aside", "form", "iframe"]
_CONTAINER_SELECTORS = ["article", "main", "[class*=content]", "[class*=article]", "[id*=content]"]
_WHITESPACE_RE = re.compile(r"\s+")


def extract_main_text(html: str) -> str:
    """Return the readable body of an HTML page, or "" if nothing was found.

    Navigation, headers, footers and scripts are dropped first. An
    ``article``/``main``/content container is preferred; otherwise the
    first paragraphs of the page are joined.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_NOISE_TAGS):
        tag.decompose()

    for selector in _CONTAINER_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        text = _WHITESPACE_RE.sub(" ", container.get_text(" ")).strip()
        if len(text) >= MIN_CONTAINER_CHARS:
            return text[:MAX_CHARS]

    paragraphs = [p.get_text(" ").strip() for p in soup.find_all("p")[:FALLBACK_PARAGRAPHS]]
    text = _WHITESPACE_RE.sub(" ", " ".join(p for p in paragraphs if p)).strip()
    return text[:MAX_CHARS]


class ArticleExtractor:
    name = "article_extractor"

    def __init__(self, timeout: float = 15.0, client: httpx.Client | None = None):
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def extract(self, url: str) -> str:
        """Fetch *url* and return its main text.

        Raises:
            SourceUnavailableError: If the page can't be fetched or has no text.
        """
        if not url:
            raise SourceUnavailableError("article has no link")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SourceUnavailableError(f"could not fetch {url}: {e}") from e

        text = extract_main_text(response.text)
        if not text:
            raise SourceUnavailableError(f"no readable text at {url}")
        return text

    def close(self) -> None:
        self.client.close()
