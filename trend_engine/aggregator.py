"""Merge per-window interest series into one growth figure per keyword."""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import pandas as pd

from .models import AggregatedTrend, SourceSeries, TimeSeriesPoint, TrendingKeyword

logger = logging.getLogger(__name__)

MIN_DENOMINATOR = 1.0


def series_growth(points: Sequence[TimeSeriesPoint]) -> float:
    """Percent change between the first and last point of a series.

    First values below 1 are floored to 1 so a keyword rising from zero
    interest does not produce an infinite growth figure.
    """
    if len(points) < 2:
        raise ValueError("need at least two points to measure growth")
    first = float(points[0].value)
    last = float(points[-1].value)
    return (last - first) / max(first, MIN_DENOMINATOR) * 100


class TrendAggregator:
    """Blends growth across time windows, most recent window weighted highest.

    Windows are merged least recent first. The first window seen for a
    keyword is taken as-is; each later one is blended in with
    ``existing * (1 - w) + growth * w`` where ``w`` is the window weight.
    """

    def aggregate(self, series_by_keyword: Dict[str, List[SourceSeries]]) -> List[AggregatedTrend]:
        contributions = self._contributions(series_by_keyword)
        if contributions.empty:
            return []

        merged: Dict[str, float] = {}
        for row in contributions.itertuples(index=False):
            if row.keyword not in merged:
                merged[row.keyword] = row.growth
            else:
                merged[row.keyword] = merged[row.keyword] * (1 - row.weight) + row.growth * row.weight

        trends = [
            self._build_trend(keyword, growth, series_by_keyword[keyword])
            for keyword, growth in merged.items()
        ]
        # sorted() is stable, so equal growth keeps the caller's keyword order
        return sorted(trends, key=lambda t: t.growth_percent, reverse=True)

    def _contributions(self, series_by_keyword: Dict[str, List[SourceSeries]]) -> pd.DataFrame:
        rows = []
        for keyword_index, (keyword, series_list) in enumerate(series_by_keyword.items()):
            for series in series_list:
                if not series.usable:
                    continue
                try:
                    growth = series_growth(series.points)
                except Exception as e:
                    logger.warning(f"Skipping {keyword} ({series.window.value}): {e}")
                    continue
                rows.append({
                    "keyword": keyword,
                    "keyword_index": keyword_index,
                    "window_order": series.window.granularity,
                    "weight": series.window.weight,
                    "growth": growth,
                })

        frame = pd.DataFrame(rows, columns=["keyword", "keyword_index", "window_order", "weight", "growth"])
        return frame.sort_values(["window_order", "keyword_index"], kind="stable")

    @staticmethod
    def _build_trend(keyword: str, growth: float, series_list: List[SourceSeries]) -> AggregatedTrend:
        usable = [s for s in series_list if s.usable]
        display = max(usable, key=lambda s: s.window.granularity)
        return AggregatedTrend(
            keyword=keyword,
            growth_percent=round(growth, 2),
            timeline_data=display.points,
            window=display.window,
            simulated=display.simulated,
        )


def trending_keywords(trends: Sequence[AggregatedTrend]) -> List[TrendingKeyword]:
    """Keywords with positive growth, highest first. Flat or falling ones are left out."""
    return [
        TrendingKeyword(keyword=t.keyword, growth=t.growth_percent)
        for t in trends
        if t.growth_percent > 0
    ]
