"""Priority ranking of opportunities with a few-shot text classifier."""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .forecaster import round_half_up
from .interfaces import TextClassifier
from .models import Opportunity

logger = logging.getLogger(__name__)

MIN_BATCH = 3
CLASS_SCORES = {"high": 100, "medium": 70, "low": 30}

PRIORITY_EXAMPLES: List[Dict[str, str]] = [
    {"text": "Search interest doubled this month and few sites cover the topic in depth", "label": "high"},
    {"text": "Breakout query with rising news coverage and clear buying intent", "label": "high"},
    {"text": "Steady interest with a handful of established competitors", "label": "medium"},
    {"text": "Seasonal topic that is starting its yearly climb", "label": "medium"},
    {"text": "Interest has been flat for months and the topic is saturated", "label": "low"},
    {"text": "Declining searches and mostly outdated coverage", "label": "low"},
]


def _classifier_input(opportunity: Opportunity) -> str:
    return f"{opportunity.title}. {opportunity.justification}"


class OpportunityRanker:
    """Re-scores opportunities as high/medium/low priority and sorts them.

    Score = class base (100/70/30) x classifier confidence, rounded. Equal
    scores keep their input order. Batches under three are returned as
    given, the classifier is not reliable on so little input.
    """

    def __init__(self, classifier: TextClassifier, examples: Sequence[Dict[str, str]] = PRIORITY_EXAMPLES):
        self.classifier = classifier
        self.examples = list(examples)

    def rank(self, opportunities: Sequence[Opportunity]) -> List[Opportunity]:
        opportunities = list(opportunities)
        if len(opportunities) < MIN_BATCH:
            return opportunities

        try:
            classifications = self.classifier.classify(
                [_classifier_input(o) for o in opportunities], self.examples
            )
            if len(classifications) != len(opportunities):
                raise ValueError(f"got {len(classifications)} classifications for {len(opportunities)} inputs")
            scored = []
            for opportunity, result in zip(opportunities, classifications):
                base = CLASS_SCORES[result.prediction.lower()]
                score = round_half_up(base * result.confidence)
                scored.append(opportunity.model_copy(update={"priority_score": score}))
        except Exception as e:
            logger.error(f"Opportunity ranking failed, keeping original order: {e}")
            return opportunities

        return sorted(scored, key=lambda o: o.priority_score, reverse=True)
