"""Concrete next steps for the keywords with the most upside."""
from __future__ import annotations

import logging
import re
from typing import List, Sequence

from .interfaces import TextGenerator
from .models import PredictionDetail
from .scheduler import keyword_growth

logger = logging.getLogger(__name__)

MAX_ACTIONS = 5
_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


def default_actions(niche: str, keywords: Sequence[str]) -> List[str]:
    keywords = list(keywords) or [niche]
    return [
        f"Create SEO-optimised content focused on {keywords[0]}",
        f"Write a complete guide to {niche} covering the latest trends",
        f"Run a social media campaign highlighting {' and '.join(keywords)}",
        f"Optimise existing pages to rank for {', '.join(keywords)}",
        f"Produce a short educational video series about {niche} to lift engagement",
    ]


class NextActionAdvisor:
    """Asks the text generator for five actionable steps, one per line."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    def suggest(self, niche: str, keywords: Sequence[str], predictions: Sequence[PredictionDetail]) -> List[str]:
        top = [p.keyword for p in sorted(predictions, key=keyword_growth, reverse=True)[:3]]
        prompt = f"""As a content marketing and SEO expert for the "{niche}" niche,
suggest {MAX_ACTIONS} concrete, actionable steps to take given that these keywords
are trending upwards: {", ".join(top or keywords)}

Each action must be specific, practical and results-oriented.
Return only the {MAX_ACTIONS} actions, one per line, with no introduction or conclusion."""

        try:
            response = self.generator.generate(prompt)
        except Exception as e:
            logger.error(f"Next action suggestion failed: {e}")
            return default_actions(niche, list(keywords)[:2])

        actions = [_BULLET_RE.sub("", line).strip() for line in response.splitlines()]
        actions = [a for a in actions if a][:MAX_ACTIONS]
        return actions or default_actions(niche, top)
