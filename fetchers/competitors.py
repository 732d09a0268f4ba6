"""Headline scraping of competitor sites."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

import httpx
from bs4 import BeautifulSoup

from trend_engine.models import CompetitorReport

from .interest_source import USER_AGENT

logger = logging.getLogger(__name__)

MAX_COMPETITORS = 3
MAX_TITLES = 10
MIN_TITLE_CHARS = 10
ANALYSIS_FAILED = "Could not analyze this site"


def extract_headings(html: str) -> List[str]:
    """h1-h3 texts longer than ten characters, in document order, at most ten."""
    soup = BeautifulSoup(html, "html.parser")
    titles = []
    for heading in soup.find_all(["h1", "h2", "h3"]):
        text = " ".join(heading.get_text(" ").split())
        if len(text) > MIN_TITLE_CHARS:
            titles.append(text)
        if len(titles) >= MAX_TITLES:
            break
    return titles


class CompetitorScraper:
    """Scrape the first three competitor URLs in parallel; one report per URL."""

    def __init__(self, timeout: float = 15.0, max_workers: int = MAX_COMPETITORS, client: httpx.Client | None = None):
        self.max_workers = max_workers
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def _analyze_one(self, url: str) -> CompetitorReport:
        try:
            response = self.client.get(url)
            response.raise_for_status()
            return CompetitorReport(url=url, titles=extract_headings(response.text))
        except Exception as e:
            logger.warning(f"Competitor analysis failed for {url}: {e}")
            return CompetitorReport(url=url, error=ANALYSIS_FAILED)

    def analyze(self, urls: Sequence[str]) -> List[CompetitorReport]:
        targets = [u for u in urls if u][:MAX_COMPETITORS]
        if not targets:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(targets))) as executor:
            # map keeps input order
            return list(executor.map(self._analyze_one, targets))

    def close(self) -> None:
        self.client.close()
