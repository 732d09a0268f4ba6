from datetime import datetime, timedelta, timezone
from typing import List, Sequence

import pytest

from trend_engine.errors import ClassificationError, GenerationError
from trend_engine.models import Classification, SourceSeries, TimeSeriesPoint, TimeWindow

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeGenerator:
    """Replays scripted replies in order and records every prompt."""

    def __init__(self, responses: Sequence = (), error: Exception | None = None):
        self.responses = list(responses)
        self.error = error
        self.prompts: List[str] = []

    def generate(self, prompt, system=None, temperature=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.responses:
            raise GenerationError("no scripted reply left")
        reply = self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClassifier:
    def __init__(self, results: Sequence[Classification] = (), error: Exception | None = None):
        self.results = list(results)
        self.error = error
        self.calls: List[List[str]] = []

    def classify(self, inputs, examples):
        self.calls.append(list(inputs))
        if self.error is not None:
            raise self.error
        return list(self.results)


def make_points(values: Sequence[float], start: datetime = NOW, step: timedelta = timedelta(weeks=1)) -> List[TimeSeriesPoint]:
    """Points ending at *start*, one *step* apart, oldest first."""
    count = len(values)
    return [
        TimeSeriesPoint(timestamp=start - step * (count - 1 - i), value=v)
        for i, v in enumerate(values)
    ]


def make_series(keyword: str, window: TimeWindow, values: Sequence[float], source: str = "google_trends") -> SourceSeries:
    return SourceSeries(keyword=keyword, source=source, window=window, points=make_points(values))


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def failing_generator() -> FakeGenerator:
    return FakeGenerator(error=GenerationError("provider down"))


@pytest.fixture
def failing_classifier() -> FakeClassifier:
    return FakeClassifier(error=ClassificationError("classifier down"))
