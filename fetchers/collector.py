"""Parallel signal collection for one niche request.

Every (keyword, window) interest fetch and the news search are started at
once and joined at a single barrier. Article pages are then fetched in a
second parallel round, and their summaries are generated one at a time.
No source failure escapes: it becomes an unavailable marker instead.
"""
from __future__ import annotations

import logging
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Sequence

from trend_engine.errors import SourceUnavailableError
from trend_engine.interfaces import TextGenerator
from trend_engine.models import SourceSeries, TextItem, TimeWindow
from trend_engine.settings import EngineSettings

from .content_extractor import ArticleExtractor
from .interest_source import GoogleTrendsSource, simulate_series
from .news_feed import GoogleNewsSource

logger = logging.getLogger(__name__)

SUMMARY_INPUT_CHARS = 3000


@dataclass
class SignalBundle:
    """Everything gathered for one request."""

    series_by_keyword: Dict[str, List[SourceSeries]] = field(default_factory=dict)
    articles: List[TextItem] = field(default_factory=list)
    unavailable: List[str] = field(default_factory=list)

    @property
    def simulated_keywords(self) -> List[str]:
        return [
            keyword for keyword, series in self.series_by_keyword.items()
            if any(s.simulated for s in series)
        ]


class SignalCollector:
    """Gathers interest series and recent articles for a niche."""

    def __init__(
        self,
        interest_source: GoogleTrendsSource,
        news_source: GoogleNewsSource,
        extractor: Optional[ArticleExtractor] = None,
        generator: Optional[TextGenerator] = None,
        windows: Sequence[TimeWindow] = tuple(TimeWindow.merge_order()),
        article_limit: int = 5,
        max_workers: int = 6,
    ):
        self.interest_source = interest_source
        self.news_source = news_source
        self.extractor = extractor
        self.generator = generator
        self.windows = list(windows)
        self.article_limit = article_limit
        self.max_workers = max_workers
        self._lock = Lock()
        self._executors: List[ThreadPoolExecutor] = []

    @classmethod
    def from_settings(cls, settings: EngineSettings, generator: Optional[TextGenerator] = None) -> "SignalCollector":
        return cls(
            interest_source=GoogleTrendsSource(timeout=settings.http_timeout, language=settings.language, geo=settings.geo),
            news_source=GoogleNewsSource(timeout=settings.http_timeout, language=settings.language, geo=settings.geo),
            extractor=ArticleExtractor(timeout=settings.http_timeout),
            generator=generator,
            windows=settings.windows,
            article_limit=settings.article_limit,
            max_workers=settings.max_workers,
        )

    # -- individual fetches; each returns a value or a marker, never raises --

    def _fetch_series(self, keyword: str, window: TimeWindow) -> SourceSeries:
        source = self.interest_source.name
        try:
            return self.interest_source.fetch(keyword, window)
        except SourceUnavailableError as e:
            logger.warning(f"Interest source unavailable for '{keyword}' ({window.value}): {e}")
            return SourceSeries.unavailable(keyword, source, window, str(e))
        except Exception as e:
            logger.error(f"Unexpected interest fetch failure for '{keyword}' ({window.value}): {e}")
            return SourceSeries.unavailable(keyword, source, window, str(e))

    def _fetch_news(self, niche: str) -> List[TextItem]:
        return self.news_source.fetch(niche, limit=self.article_limit)

    def _extract(self, url: str) -> Optional[str]:
        try:
            return self.extractor.extract(url)
        except Exception as e:
            logger.info(f"Skipping article content for {url}: {e}")
            return None

    # -- executor bookkeeping --

    def _open_executor(self) -> ThreadPoolExecutor:
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="signal")
        with self._lock:
            self._executors.append(executor)
        return executor

    def _release_executor(self, executor: ThreadPoolExecutor) -> None:
        with self._lock:
            if executor in self._executors:
                self._executors.remove(executor)
        executor.shutdown(wait=False, cancel_futures=True)

    def cancel(self) -> None:
        """Abandon every in-progress collection: queued fetches never start."""
        with self._lock:
            executors, self._executors = self._executors, []
        for executor in executors:
            executor.shutdown(wait=False, cancel_futures=True)
        if executors:
            logger.info(f"Cancelled {len(executors)} in-progress collection(s)")

    def close(self) -> None:
        self.cancel()
        for component in (self.interest_source, self.news_source, self.extractor):
            if component is not None:
                component.close()

    # -- orchestration --

    def collect(self, niche: str, keywords: Sequence[str]) -> SignalBundle:
        bundle = SignalBundle(series_by_keyword={keyword: [] for keyword in keywords})
        executor = self._open_executor()
        try:
            series_futures: Dict[Future, tuple] = {
                executor.submit(self._fetch_series, keyword, window): (keyword, window)
                for keyword in keywords
                for window in self.windows
            }
            news_future = executor.submit(self._fetch_news, niche)

            wait([*series_futures, news_future], return_when=ALL_COMPLETED)

            # Collect in submission order so downstream ordering is deterministic
            for future, (keyword, window) in series_futures.items():
                bundle.series_by_keyword[keyword].append(self._series_result(future, keyword, window))

            bundle.articles = self._news_result(news_future, niche, bundle)
            if self.extractor is not None and bundle.articles:
                bundle.articles = self._enrich_articles(executor, niche, bundle.articles)
        finally:
            self._release_executor(executor)

        for keyword, series_list in bundle.series_by_keyword.items():
            for series in series_list:
                if not series.available:
                    bundle.unavailable.append(f"{series.source}:{keyword}:{series.window.value}")
            if not any(s.usable for s in series_list):
                logger.warning(f"No usable interest data for '{keyword}', substituting simulated series")
                series_list.append(simulate_series(keyword, self.windows[-1]))

        logger.info(
            f"Collected {sum(len(v) for v in bundle.series_by_keyword.values())} series and "
            f"{len(bundle.articles)} articles for '{niche}' ({len(bundle.unavailable)} unavailable)"
        )
        return bundle

    def _series_result(self, future: Future, keyword: str, window: TimeWindow) -> SourceSeries:
        if future.cancelled():
            return SourceSeries.unavailable(keyword, self.interest_source.name, window, "cancelled")
        exc = future.exception()
        if exc is not None:
            return SourceSeries.unavailable(keyword, self.interest_source.name, window, str(exc))
        return future.result()

    def _news_result(self, future: Future, niche: str, bundle: SignalBundle) -> List[TextItem]:
        if future.cancelled():
            bundle.unavailable.append(f"{self.news_source.name}:{niche}")
            return []
        exc = future.exception()
        if exc is not None:
            logger.warning(f"News source unavailable for '{niche}': {exc}")
            bundle.unavailable.append(f"{self.news_source.name}:{niche}")
            return []
        return future.result()

    def _enrich_articles(self, executor: ThreadPoolExecutor, niche: str, articles: List[TextItem]) -> List[TextItem]:
        try:
            content_futures = [executor.submit(self._extract, item.link) for item in articles]
        except RuntimeError:
            # executor was shut down by cancel()
            return articles
        wait(content_futures, return_when=ALL_COMPLETED)

        enriched = []
        for item, future in zip(articles, content_futures):
            content = None if future.cancelled() or future.exception() else future.result()
            if content and self.generator is not None:
                summary = self._summarize(niche, item.title, content)
                if summary:
                    item = item.model_copy(update={"summary": summary})
            enriched.append(item)
        return enriched

    def _summarize(self, niche: str, title: str, content: str) -> Optional[str]:
        prompt = f"""Summarise this article about "{niche}" in 2-3 sentences, keeping only
facts relevant to trends in the niche.

TITLE: {title}

CONTENT:
{content[:SUMMARY_INPUT_CHARS]}"""
        try:
            return self.generator.generate(prompt, temperature=0.3).strip() or None
        except Exception as e:
            logger.warning(f"Summary failed for '{title}': {e}")
            return None
