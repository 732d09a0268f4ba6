"""Short-horizon keyword interest forecasting with ordinary least squares."""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

import numpy as np

from .models import TimeSeriesPoint
from .settings import SHORT_HORIZON

logger = logging.getLogger(__name__)

MIN_POINTS = 3
DEFAULT_START = 50
DEFAULT_STEP = 5


def round_half_up(value: float) -> int:
    """Round non-negative values with halves going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def default_sequence(horizon: int = SHORT_HORIZON) -> List[int]:
    """Fixed ascending fallback, ``[50, 55, 60]`` for the short horizon."""
    return [min(100, DEFAULT_START + DEFAULT_STEP * i) for i in range(horizon)]


def _values(series: Sequence[TimeSeriesPoint | float | int]) -> List[float]:
    return [float(p.value) if isinstance(p, TimeSeriesPoint) else float(p) for p in series]


class Forecaster:
    """Projects the next ``horizon`` values of a series, earliest point first.

    The regression runs over (position, value) pairs, not wall-clock time,
    so irregular sampling gaps do not bend the projected line.
    """

    def __init__(self, horizon: int = SHORT_HORIZON):
        if horizon < 1:
            raise ValueError("horizon must be at least 1")
        self.horizon = horizon

    def forecast(self, series: Sequence[TimeSeriesPoint | float | int]) -> List[int]:
        values = _values(series)
        if len(values) < MIN_POINTS:
            return default_sequence(self.horizon)

        y = np.asarray(values, dtype=float)
        if not np.all(np.isfinite(y)):
            logger.warning("Non-finite values in series, using default forecast")
            return default_sequence(self.horizon)

        x = np.arange(len(y), dtype=float)
        n = len(y)
        denominator = n * np.sum(x * x) - np.sum(x) ** 2
        if np.isclose(denominator, 0.0):
            return default_sequence(self.horizon)

        slope = (n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denominator
        intercept = (np.sum(y) - slope * np.sum(x)) / n

        future_x = x[-1] + np.arange(1, self.horizon + 1)
        projected = np.clip(slope * future_x + intercept, 0, 100)
        return [round_half_up(v) for v in projected]

    def forecast_all(
        self,
        keywords: Sequence[str],
        historical_data: Dict[str, Sequence[TimeSeriesPoint | float | int]],
    ) -> Dict[str, List[int]]:
        """Forecast every requested keyword; missing history gets the default."""
        forecasts: Dict[str, List[int]] = {}
        for keyword in keywords:
            forecasts[keyword] = self.forecast(historical_data.get(keyword, []))
        return forecasts


def current_value(series: Sequence[TimeSeriesPoint | float | int]) -> int:
    """Latest observed value, clamped and rounded; 50 when there is no history."""
    values = _values(series)
    if not values or not np.isfinite(values[-1]):
        return DEFAULT_START
    return round_half_up(min(100.0, max(0.0, values[-1])))
