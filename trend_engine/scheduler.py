"""Recommended intervention dates for keywords that are forecast to grow."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Sequence

from .models import InterventionPoint, PredictionDetail

# (days from now, how many top keywords (None = all), action)
CADENCE = [
    (7, 2, "Create conversion-optimised content"),
    (14, 3, "Launch a focused marketing campaign"),
    (30, None, "Develop related products or services"),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def keyword_growth(detail: PredictionDetail) -> int:
    """Final forecast value minus the current value."""
    return detail.predicted_values[-1] - detail.current_value


def growing_keywords(predictions: Sequence[PredictionDetail]) -> List[str]:
    """Keywords whose final forecast beats today, largest growth first."""
    growing = [p for p in predictions if keyword_growth(p) > 0]
    return [p.keyword for p in sorted(growing, key=keyword_growth, reverse=True)]


class InterventionScheduler:
    """Turns growth trajectories into a +7/+14/+30 day action plan."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock

    def schedule(self, predictions: Sequence[PredictionDetail]) -> List[InterventionPoint]:
        keywords = growing_keywords(predictions)
        if not keywords:
            return []

        now = self.clock()
        return [
            InterventionPoint(
                timestamp=now + timedelta(days=days),
                action=action,
                keywords=keywords[:top] if top else keywords,
            )
            for days, top, action in CADENCE
        ]
