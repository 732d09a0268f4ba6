"""Qualitative commentary on recent articles about a niche."""
from __future__ import annotations

import logging
from typing import Sequence

from .interfaces import TextGenerator

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = "Not enough recent content to analyse."
ANALYSIS_UNAVAILABLE = "Content analysis could not be completed."


class InsightExtractor:
    """Asks the text generator what recent headlines say about where a niche is heading."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    def _prompt(self, niche: str, titles: Sequence[str]) -> str:
        articles = "\n".join(f"- {t}" for t in titles)
        return f"""Analyse the following recent article titles about "{niche}" and identify
emerging patterns, shifts in audience interest, and likely future opportunities.

Recent articles:
{articles}

Give a concise analysis (at most 3 paragraphs) covering:
1. Emerging thematic patterns
2. Recurring problems or concerns
3. Where interest in this niche is heading"""

    def extract(self, niche: str, titles: Sequence[str]) -> str:
        """Never raises; falls back to fixed messages on empty input or failure."""
        titles = [t.strip() for t in titles if t and t.strip()]
        if not titles:
            return INSUFFICIENT_DATA

        try:
            return self.generator.generate(self._prompt(niche, titles))
        except Exception as e:
            logger.error(f"Content analysis failed for '{niche}': {e}")
            return ANALYSIS_UNAVAILABLE
