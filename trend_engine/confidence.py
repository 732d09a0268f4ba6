"""Single confidence score for a batch of keyword forecasts."""
from __future__ import annotations

from typing import Dict, Sequence

import numpy as np

MIN_CONFIDENCE = 30.0
MAX_CONFIDENCE = 95.0
MAX_BASE = 70.0
POINTS_WEIGHT = 5.0
VOLATILITY_DIVISOR = 10.0


def variance(values: Sequence[float]) -> float:
    """Population variance (mean squared deviation from the mean)."""
    if not values:
        return 0.0
    return float(np.var(np.asarray(values, dtype=float)))


def estimate_confidence(forecasts: Dict[str, Sequence[float]]) -> float:
    """More points raise confidence, volatile forecasts lower it.

    ``forecasts`` maps keyword to its raw forecast values, before any
    narrative refinement. The result is clamped to [30, 95].
    """
    total_points = sum(len(values) for values in forecasts.values())
    base = min(MAX_BASE, total_points * POINTS_WEIGHT)
    penalty = sum(variance(values) / VOLATILITY_DIVISOR for values in forecasts.values())
    score = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, base - penalty))
    return round(score, 1)
