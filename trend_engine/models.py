"""Pydantic data models used across the trend engine."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Score = Annotated[int, Field(ge=0, le=100)]


class _Record(BaseModel):
    """Base record: snake_case in Python, camelCase on the wire."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class TimeWindow(str, Enum):
    """Search-interest time windows, named the way the trends backend expects."""

    THREE_MONTHS = "today 3-m"
    ONE_MONTH = "today 1-m"
    ONE_WEEK = "now 7-d"

    @property
    def weight(self) -> float:
        """Blend weight of this window when merging growth across windows."""
        return _WINDOW_WEIGHTS[self]

    @property
    def granularity(self) -> int:
        """Higher means finer sampling (weekly data beats quarterly data)."""
        return _WINDOW_GRANULARITY[self]

    @classmethod
    def merge_order(cls) -> List["TimeWindow"]:
        """Least recent first, so the most recent window is merged last."""
        return [cls.THREE_MONTHS, cls.ONE_MONTH, cls.ONE_WEEK]


_WINDOW_WEIGHTS = {
    TimeWindow.THREE_MONTHS: 0.1,
    TimeWindow.ONE_MONTH: 0.3,
    TimeWindow.ONE_WEEK: 0.6,
}
_WINDOW_GRANULARITY = {
    TimeWindow.THREE_MONTHS: 0,
    TimeWindow.ONE_MONTH: 1,
    TimeWindow.ONE_WEEK: 2,
}


class TimeSeriesPoint(_Record):
    """One interest observation, value on the 0-100 relative scale."""

    timestamp: datetime = Field(
        ...,
        validation_alias=AliasChoices("timestamp", "date"),
        description="Observation time; callers may send it as 'date'",
    )
    value: float = Field(..., ge=0, le=100, description="Relative interest score 0-100")


def _check_increasing(timestamps: List[datetime], what: str) -> None:
    for earlier, later in zip(timestamps, timestamps[1:]):
        if later <= earlier:
            raise ValueError(f"{what} timestamps must be strictly increasing")


class SourceSeries(_Record):
    """Interest series for one keyword from one (source, window) fetch."""

    keyword: str
    source: str = Field(..., description="Source name, e.g. 'google_trends' or 'simulated'")
    window: TimeWindow
    points: List[TimeSeriesPoint] = Field(default_factory=list)
    available: bool = Field(True, description="False marks the source as unavailable")
    error: str | None = Field(None, description="Why the source was unavailable")
    simulated: bool = False

    @model_validator(mode="after")
    def _points_in_order(self) -> "SourceSeries":
        _check_increasing([p.timestamp for p in self.points], "series")
        return self

    @classmethod
    def unavailable(cls, keyword: str, source: str, window: TimeWindow, error: str) -> "SourceSeries":
        return cls(keyword=keyword, source=source, window=window, available=False, error=error)

    @property
    def usable(self) -> bool:
        return self.available and len(self.points) >= 2


class AggregatedTrend(_Record):
    """Growth of one keyword merged across every window that produced data."""

    keyword: str
    growth_percent: float = Field(..., description="Signed growth, weighted across windows")
    timeline_data: List[TimeSeriesPoint] = Field(
        default_factory=list, description="Most granular series available, for display"
    )
    window: TimeWindow | None = Field(None, description="Window the timeline was taken from")
    simulated: bool = False


class TrendingKeyword(_Record):
    keyword: str
    growth: float


class TextItem(_Record):
    """A news or discussion item about the niche."""

    title: str
    link: str = ""
    published_at: str | None = None
    source: str = ""
    summary: str | None = Field(None, description="Only set when content extraction succeeded")


class Opportunity(_Record):
    """A content opportunity synthesised from trend and text signals."""

    id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    justification: str = Field(..., min_length=1)
    suggested_titles: List[str] = Field(..., min_length=1, max_length=3)
    approach: str | None = None
    estimated_growth: float | None = Field(None, description="Growth guessed by the text generator")
    priority_score: Score = Field(50, alias="growthScore", description="Ranking score 0-100")


class Classification(_Record):
    prediction: str
    confidence: float = Field(..., ge=0, le=1)


class PredictionDetail(_Record):
    keyword: str
    current_value: Score
    predicted_values: List[Score] = Field(..., min_length=1)
    explanation: str


class InterventionPoint(_Record):
    timestamp: datetime
    action: str = Field(..., min_length=1)
    keywords: List[str] = Field(default_factory=list)


class PredictionResult(_Record):
    niche: str
    keywords: List[str]
    predictions: List[PredictionDetail]
    intervention_points: List[InterventionPoint] = Field(default_factory=list)
    next_actions: List[str] = Field(..., min_length=1, max_length=5)
    confidence_score: float = Field(..., ge=0, le=100)
    is_fallback: bool = False

    @model_validator(mode="after")
    def _interventions_in_order(self) -> "PredictionResult":
        _check_increasing([p.timestamp for p in self.intervention_points], "intervention")
        return self


class TrendsResult(_Record):
    niche: str
    keywords: List[str]
    trending_keywords: List[TrendingKeyword] = Field(default_factory=list)
    opportunities: List[Opportunity] = Field(..., min_length=1)
    recent_articles: List[str] = Field(default_factory=list)
    articles: List[TextItem] = Field(default_factory=list)
    is_fallback: bool = False


class CompetitorReport(_Record):
    url: str
    titles: List[str] = Field(default_factory=list, max_length=10)
    error: str | None = None


def _clean_keywords(keywords: List[str]) -> List[str]:
    seen: List[str] = []
    for keyword in keywords:
        keyword = keyword.strip()
        if keyword and keyword not in seen:
            seen.append(keyword)
    return seen


class NicheAnalysis(_Record):
    """Trends for a niche plus headline scrapes of the competitor sites given."""

    trends: TrendsResult
    competitors: List[CompetitorReport] = Field(default_factory=list)


class NicheAnalysisRequest(_Record):
    niche: str = Field(..., min_length=1)
    keywords: List[str] = Field(..., min_length=1, max_length=7)
    competitor_urls: List[str] = Field(default_factory=list, max_length=4)

    @field_validator("keywords")
    @classmethod
    def _unique_keywords(cls, value: List[str]) -> List[str]:
        cleaned = _clean_keywords(value)
        if not cleaned:
            raise ValueError("at least one non-blank keyword is required")
        return cleaned


class PredictionRequest(_Record):
    niche: str = Field(..., min_length=1)
    keywords: List[str] = Field(..., min_length=1, max_length=7)
    historical_data: Dict[str, List[TimeSeriesPoint]] = Field(default_factory=dict)
    recent_articles: List[str] = Field(default_factory=list)

    @field_validator("keywords")
    @classmethod
    def _unique_keywords(cls, value: List[str]) -> List[str]:
        cleaned = _clean_keywords(value)
        if not cleaned:
            raise ValueError("at least one non-blank keyword is required")
        return cleaned

    @field_validator("historical_data")
    @classmethod
    def _sorted_history(cls, value: Dict[str, List[TimeSeriesPoint]]) -> Dict[str, List[TimeSeriesPoint]]:
        # Keep the last observation for a repeated timestamp, then order by time.
        ordered: Dict[str, List[TimeSeriesPoint]] = {}
        for keyword, points in value.items():
            by_time = {p.timestamp: p for p in points}
            ordered[keyword] = [by_time[t] for t in sorted(by_time)]
        return ordered
