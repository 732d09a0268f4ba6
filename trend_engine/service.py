"""Service facades: niche trend analysis and keyword interest prediction.

Both services run a linear pipeline and never let an exception reach the
caller once the request is validated. If a stage blows up the caller
gets a schema-valid result flagged with ``is_fallback``.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from .actions import NextActionAdvisor, default_actions
from .aggregator import TrendAggregator, trending_keywords
from .confidence import estimate_confidence
from .demo import build_demo_articles, build_demo_history
from .forecaster import Forecaster, current_value
from .insights import InsightExtractor
from .interfaces import TextClassifier, TextGenerator
from .models import (
    CompetitorReport,
    InterventionPoint,
    NicheAnalysis,
    NicheAnalysisRequest,
    PredictionDetail,
    PredictionRequest,
    PredictionResult,
    TextItem,
    TimeSeriesPoint,
    TrendsResult,
)
from .ranker import OpportunityRanker
from .scheduler import InterventionScheduler
from .settings import SHORT_HORIZON, EngineSettings
from .synthesizer import OpportunitySynthesizer, fallback_opportunities

if TYPE_CHECKING:
    from fetchers.collector import SignalCollector
    from fetchers.competitors import CompetitorScraper

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 35.0
FALLBACK_CURRENT = 50
FALLBACK_FIRST = 55
FALLBACK_STEP = 5
FALLBACK_ACTION = "Develop optimised content"
COMPETITOR_FAILED = "Could not analyze this site"


def fallback_prediction(
    niche: str,
    keywords: Sequence[str],
    horizon: int = SHORT_HORIZON,
    now: Optional[datetime] = None,
) -> PredictionResult:
    """Generic prediction returned when the pipeline itself failed."""
    predicted = [min(100, FALLBACK_FIRST + FALLBACK_STEP * i) for i in range(horizon)]
    predictions = [
        PredictionDetail(
            keyword=keyword,
            current_value=FALLBACK_CURRENT,
            predicted_values=predicted,
            explanation="Estimated prediction based on general trends.",
        )
        for keyword in keywords
    ]
    now = now or datetime.now(timezone.utc)
    return PredictionResult(
        niche=niche,
        keywords=list(keywords),
        predictions=predictions,
        intervention_points=[
            InterventionPoint(
                timestamp=now + timedelta(days=30),
                action=FALLBACK_ACTION,
                keywords=list(keywords[:2]),
            )
        ],
        next_actions=default_actions(niche, list(keywords[:2])),
        confidence_score=FALLBACK_CONFIDENCE,
        is_fallback=True,
    )


def fallback_trends_result(niche: str, keywords: Sequence[str], articles: Sequence[TextItem] = ()) -> TrendsResult:
    return TrendsResult(
        niche=niche,
        keywords=list(keywords),
        trending_keywords=[],
        opportunities=fallback_opportunities(niche, keywords),
        recent_articles=[a.title for a in articles],
        articles=list(articles),
        is_fallback=True,
    )


class TrendsService:
    """Collect signals for a niche, then aggregate, synthesise and rank opportunities."""

    def __init__(
        self,
        collector: SignalCollector,
        synthesizer: OpportunitySynthesizer,
        ranker: OpportunityRanker,
        aggregator: Optional[TrendAggregator] = None,
        competitor_scraper: Optional[CompetitorScraper] = None,
    ):
        self.collector = collector
        self.synthesizer = synthesizer
        self.ranker = ranker
        self.aggregator = aggregator or TrendAggregator()
        self.competitor_scraper = competitor_scraper

    def get_trends_for_niche(self, niche: str, keywords: Sequence[str]) -> TrendsResult:
        request = NicheAnalysisRequest(niche=niche, keywords=list(keywords))
        niche, keywords = request.niche, request.keywords

        articles: List[TextItem] = []
        started = time.perf_counter()
        try:
            bundle = self.collector.collect(niche, keywords)
            articles = bundle.articles
            logger.info(f"Signal collection for '{niche}' took {time.perf_counter() - started:.1f}s")

            trends = self.aggregator.aggregate(bundle.series_by_keyword)
            opportunities = self.synthesizer.discover(niche, keywords, trends, articles)
            opportunities = self.ranker.rank(opportunities)

            return TrendsResult(
                niche=niche,
                keywords=keywords,
                trending_keywords=trending_keywords(trends),
                opportunities=opportunities,
                recent_articles=[a.title for a in articles],
                articles=articles,
            )
        except Exception as e:
            logger.error(f"Trend analysis failed for '{niche}', returning fallback result: {e}", exc_info=True)
            return fallback_trends_result(niche, keywords, articles)

    def analyze_competitors(self, urls: Sequence[str]) -> List[CompetitorReport]:
        if self.competitor_scraper is None:
            logger.warning("No competitor scraper configured")
            return [CompetitorReport(url=url, error=COMPETITOR_FAILED) for url in list(urls)[:3]]
        try:
            return self.competitor_scraper.analyze(urls)
        except Exception as e:
            logger.error(f"Competitor analysis failed: {e}")
            return [CompetitorReport(url=url, error=COMPETITOR_FAILED) for url in list(urls)[:3]]

    def analyze_niche(self, request: NicheAnalysisRequest) -> NicheAnalysis:
        trends = self.get_trends_for_niche(request.niche, request.keywords)
        competitors = self.analyze_competitors(request.competitor_urls) if request.competitor_urls else []
        return NicheAnalysis(trends=trends, competitors=competitors)

    def close(self) -> None:
        for component in (self.collector, self.competitor_scraper):
            if component is not None and hasattr(component, "close"):
                component.close()


class TrendsPredictionService:
    """Forecast keyword interest, refine it with a narrative and plan interventions."""

    def __init__(
        self,
        generator: TextGenerator,
        horizon: int = SHORT_HORIZON,
        scheduler: Optional[InterventionScheduler] = None,
    ):
        self.horizon = horizon
        self.forecaster = Forecaster(horizon)
        self.insights = InsightExtractor(generator)
        self.synthesizer = OpportunitySynthesizer(generator)
        self.advisor = NextActionAdvisor(generator)
        self.scheduler = scheduler or InterventionScheduler()

    def predict_trends(
        self,
        niche: str,
        keywords: Sequence[str],
        historical_data: Optional[Dict[str, Sequence[TimeSeriesPoint | dict]]] = None,
        recent_articles: Sequence[str] = (),
    ) -> PredictionResult:
        request = PredictionRequest(
            niche=niche,
            keywords=list(keywords),
            historical_data=historical_data or {},
            recent_articles=list(recent_articles),
        )
        niche, keywords, history = request.niche, request.keywords, request.historical_data

        try:
            forecasts = self.forecaster.forecast_all(keywords, history)
            current = {k: current_value(history.get(k, [])) for k in keywords}

            insight = self.insights.extract(niche, request.recent_articles)
            predictions = self.synthesizer.narrate(niche, keywords, forecasts, current, insight)
            interventions = self.scheduler.schedule(predictions)
            next_actions = self.advisor.suggest(niche, keywords, predictions)
            # raw regression output, not the narrated values
            confidence = estimate_confidence(forecasts)

            logger.info(f"Predicted {len(predictions)} keywords for '{niche}' (confidence {confidence})")
            return PredictionResult(
                niche=niche,
                keywords=keywords,
                predictions=predictions,
                intervention_points=interventions,
                next_actions=next_actions,
                confidence_score=confidence,
            )
        except Exception as e:
            logger.error(f"Prediction failed for '{niche}', returning fallback result: {e}", exc_info=True)
            return fallback_prediction(niche, keywords, self.horizon, self.scheduler.clock())

    def predict_demo(self, niche: str, keywords: Sequence[str]) -> PredictionResult:
        """Run :meth:`predict_trends` on synthetic history and headlines."""
        history = build_demo_history(keywords, now=self.scheduler.clock())
        return self.predict_trends(niche, keywords, history, build_demo_articles(niche, keywords))


def build_default_services(
    settings: Optional[EngineSettings] = None,
) -> Tuple[TrendsService, TrendsPredictionService]:
    """Wire both services to the live network sources and AI providers."""
    # fetchers depends on this package, so import lazily
    from fetchers.ai_client import AIClient
    from fetchers.collector import SignalCollector
    from fetchers.competitors import CompetitorScraper

    settings = settings or EngineSettings.from_env()
    client = AIClient.from_settings(settings)
    classifier: TextClassifier = client

    trends_service = TrendsService(
        collector=SignalCollector.from_settings(settings, generator=client),
        synthesizer=OpportunitySynthesizer(client),
        ranker=OpportunityRanker(classifier),
        competitor_scraper=CompetitorScraper(timeout=settings.http_timeout),
    )
    prediction_service = TrendsPredictionService(client, horizon=settings.forecast_horizon)
    return trends_service, prediction_service
