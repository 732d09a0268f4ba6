"""Search-interest time series from Google Trends, plus a simulated stand-in."""
from __future__ import annotations

import hashlib
import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pandas as pd
from pytrends.request import TrendReq

from trend_engine.errors import SourceUnavailableError
from trend_engine.models import SourceSeries, TimeSeriesPoint, TimeWindow

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

SIMULATED_POINTS = 12
SIMULATED_MIN = 5
SIMULATED_MAX = 100
_SIMULATED_SPACING = {
    TimeWindow.THREE_MONTHS: timedelta(weeks=1),
    TimeWindow.ONE_MONTH: timedelta(days=2),
    TimeWindow.ONE_WEEK: timedelta(hours=12),
}


def _as_utc(timestamp: pd.Timestamp) -> datetime:
    stamp = pd.Timestamp(timestamp)
    stamp = stamp.tz_localize("UTC") if stamp.tzinfo is None else stamp.tz_convert("UTC")
    return stamp.to_pydatetime()


def frame_to_series(frame: pd.DataFrame, keyword: str, window: TimeWindow) -> SourceSeries:
    """Build a :class:`SourceSeries` from an ``interest_over_time()`` frame.

    The frame is indexed by date with one column per keyword (plus
    ``isPartial``). Missing values are dropped and the rest clamped to 0-100.

    Raises:
        SourceUnavailableError: If the frame has no usable points.
    """
    if frame is None or frame.empty or keyword not in frame.columns:
        raise SourceUnavailableError(f"no interest data for '{keyword}' ({window.value})")

    values = pd.to_numeric(frame[keyword], errors="coerce").dropna().clip(0, 100)
    values = values[~values.index.duplicated(keep="last")].sort_index()
    if values.empty:
        raise SourceUnavailableError(f"no interest data for '{keyword}' ({window.value})")

    points = [TimeSeriesPoint(timestamp=_as_utc(t), value=float(v)) for t, v in values.items()]
    return SourceSeries(keyword=keyword, source=GoogleTrendsSource.name, window=window, points=points)


class GoogleTrendsSource:
    """Interest-over-time for one keyword and window through pytrends.

    A fresh ``TrendReq`` is built per fetch, since its payload state is not
    safe to share between the collector's worker threads. Every failure
    (rate limit, timeout, empty frame) is raised as
    :class:`SourceUnavailableError`; the collector turns it into a marker.
    """

    name = "google_trends"

    def __init__(
        self,
        timeout: float = 15.0,
        language: str = "en",
        geo: str = "",
        tz: int = 0,
        retries: int = 2,
        backoff_factor: float = 0.5,
        client_factory: Optional[Callable[[], TrendReq]] = None,
    ):
        self.timeout = timeout
        self.language = language
        self.geo = geo
        self.tz = tz
        self.retries = retries
        self.backoff_factor = backoff_factor
        self.client_factory = client_factory or self._new_client

    def _new_client(self) -> TrendReq:
        return TrendReq(
            hl=self.language,
            tz=self.tz,
            timeout=(self.timeout, self.timeout),
            retries=self.retries,
            backoff_factor=self.backoff_factor,
            requests_args={"headers": {"User-Agent": USER_AGENT}},
        )

    def fetch(self, keyword: str, window: TimeWindow) -> SourceSeries:
        try:
            client = self.client_factory()
            client.build_payload(kw_list=[keyword], cat=0, timeframe=window.value, geo=self.geo, gprop="")
            frame = client.interest_over_time()
        except Exception as e:
            if "429" in str(e) or "TooManyRequests" in type(e).__name__:
                logger.warning(f"Rate limited by Google Trends for '{keyword}' ({window.value})")
            raise SourceUnavailableError(f"google trends failed for '{keyword}' ({window.value}): {e}") from e
        return frame_to_series(frame, keyword, window)

    def close(self) -> None:
        """Nothing is held open between fetches."""


def _seed(keyword: str, window: TimeWindow) -> int:
    digest = hashlib.sha1(f"{keyword}|{window.value}".encode("utf-8")).hexdigest()
    return int(digest[:12], 16)


def simulate_series(keyword: str, window: TimeWindow, now: datetime | None = None) -> SourceSeries:
    """Upward-drifting random walk in [5, 100], seeded by keyword and window.

    Used when every real fetch for a keyword failed, so later stages still
    have something to work with. No network access.
    """
    rng = random.Random(_seed(keyword, window))
    now = now or datetime.now(timezone.utc)
    spacing = _SIMULATED_SPACING[window]

    values: List[int] = [rng.randint(20, 50)]
    for _ in range(SIMULATED_POINTS - 1):
        step = rng.uniform(-4, 8)
        values.append(round(min(SIMULATED_MAX, max(SIMULATED_MIN, values[-1] + step))))
    if values[-1] <= values[0]:
        values[-1] = min(SIMULATED_MAX, values[0] + rng.randint(3, 10))

    points = [
        TimeSeriesPoint(timestamp=now - spacing * (SIMULATED_POINTS - 1 - i), value=v)
        for i, v in enumerate(values)
    ]
    return SourceSeries(keyword=keyword, source="simulated", window=window, points=points, simulated=True)
