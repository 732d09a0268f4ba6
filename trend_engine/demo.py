"""Synthetic history and headlines for trying the predictor without real data."""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from .models import TimeSeriesPoint

DEMO_WEEKS = 12


def build_demo_history(
    keywords: Sequence[str],
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, List[TimeSeriesPoint]]:
    """Twelve weekly points per keyword, oldest first.

    Even-length keywords ramp up, odd-length ones ramp down, with +/-5 noise.
    """
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()

    history: Dict[str, List[TimeSeriesPoint]] = {}
    for keyword in keywords:
        base = 40 + (len(keyword) % 10) * 3
        direction = 1 if len(keyword) % 2 == 0 else -1
        points = []
        for weeks_ago in range(DEMO_WEEKS - 1, -1, -1):
            ramp = ((DEMO_WEEKS - 1 - weeks_ago) / 3) * direction
            noise = rng.uniform(-5, 5)
            points.append(TimeSeriesPoint(
                timestamp=now - timedelta(weeks=weeks_ago),
                value=max(0, min(100, round(base + ramp + noise))),
            ))
        history[keyword] = points
    return history


def build_demo_articles(niche: str, keywords: Sequence[str]) -> List[str]:
    first = keywords[0] if keywords else niche
    second = keywords[1] if len(keywords) > 1 else niche
    return [
        f"New trends in {niche} for the year ahead",
        f"How {first} is transforming the market",
        f"Experts predict the rise of {second}",
        f"5 strategies to make the most of {niche} in your business",
        f"Why {first} will matter in the coming months",
    ]
