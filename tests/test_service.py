import json
from datetime import timedelta

from conftest import FakeClassifier, FakeGenerator, make_points, make_series
from fetchers.collector import SignalBundle, SignalCollector
from trend_engine.errors import SourceUnavailableError
from trend_engine.models import Classification, CompetitorReport, NicheAnalysisRequest, TextItem, TimeWindow
from trend_engine.ranker import OpportunityRanker
from trend_engine.scheduler import InterventionScheduler
from trend_engine.service import TrendsPredictionService, TrendsService
from trend_engine.synthesizer import OpportunitySynthesizer

Q, M, W = TimeWindow.THREE_MONTHS, TimeWindow.ONE_MONTH, TimeWindow.ONE_WEEK

OPPORTUNITIES_REPLY = json.dumps([
    {"title": "Hot yoga for beginners", "justification": "Interest up 50%", "suggestedTitles": ["Hot yoga 101"]},
    {"title": "Eco yoga mats", "justification": "Steady demand", "suggestedTitles": ["Best eco mats"]},
    {"title": "Yoga retreats", "justification": "Seasonal climb", "suggestedTitles": ["Top retreats"]},
])


class FakeCollector:
    def __init__(self, bundle=None, error=None):
        self.bundle = bundle
        self.error = error
        self.closed = False

    def collect(self, niche, keywords):
        if self.error:
            raise self.error
        return self.bundle

    def close(self):
        self.closed = True


class FakeScraper:
    def analyze(self, urls):
        return [CompetitorReport(url=u, titles=["A competitor headline"]) for u in urls[:3]]


class DownInterestSource:
    name = "google_trends"

    def fetch(self, keyword, window):
        raise SourceUnavailableError("429 too many requests")

    def close(self):
        pass


class DownNewsSource:
    name = "google_news"

    def fetch(self, query, limit=5):
        raise SourceUnavailableError("feed timed out")

    def close(self):
        pass


def _yoga_bundle():
    return SignalBundle(
        series_by_keyword={
            "hot yoga": [make_series("hot yoga", Q, [40, 50]), make_series("hot yoga", W, [40, 60])],
            "yoga mats": [make_series("yoga mats", M, [50, 45])],
        },
        articles=[TextItem(title="Hot yoga studios expand"), TextItem(title="Mats go green")],
    )


def _trends_service(generator, classifier, collector=None, scraper=None):
    return TrendsService(
        collector=collector or FakeCollector(_yoga_bundle()),
        synthesizer=OpportunitySynthesizer(generator),
        ranker=OpportunityRanker(classifier),
        competitor_scraper=scraper,
    )


class TestTrendsService:
    def test_yoga_niche(self):
        classifier = FakeClassifier([
            Classification(prediction="medium", confidence=0.8),
            Classification(prediction="high", confidence=0.9),
            Classification(prediction="low", confidence=0.9),
        ])
        service = _trends_service(FakeGenerator([OPPORTUNITIES_REPLY]), classifier)

        result = service.get_trends_for_niche("yoga", ["hot yoga", "yoga mats"])

        assert not result.is_fallback
        # hot yoga: 25% (3m) then 25*0.4 + 50*0.6 = 40%; mats are falling
        assert [(t.keyword, t.growth) for t in result.trending_keywords] == [("hot yoga", 40.0)]
        assert [o.title for o in result.opportunities] == ["Eco yoga mats", "Hot yoga for beginners", "Yoga retreats"]
        assert [o.priority_score for o in result.opportunities] == [90, 56, 27]
        assert result.recent_articles == ["Hot yoga studios expand", "Mats go green"]

    def test_free_text_reply_still_yields_opportunities(self, failing_classifier):
        reply = "Opportunity 1: Hot yoga at home\nOpportunity 2: Recycled mats"
        result = _trends_service(FakeGenerator([reply]), failing_classifier).get_trends_for_niche(
            "yoga", ["hot yoga", "yoga mats"]
        )
        assert [o.title for o in result.opportunities] == ["Hot yoga at home", "Recycled mats"]
        assert not result.is_fallback

    def test_every_source_down_still_yields_trends(self, failing_generator, failing_classifier):
        collector = SignalCollector(DownInterestSource(), DownNewsSource())
        service = _trends_service(failing_generator, failing_classifier, collector=collector)

        result = service.get_trends_for_niche("yoga", ["hot yoga", "yoga mats"])

        assert not result.is_fallback
        assert {t.keyword for t in result.trending_keywords} == {"hot yoga", "yoga mats"}
        assert all(t.growth > 0 for t in result.trending_keywords)
        assert result.opportunities
        assert result.articles == []

    def test_collector_crash_returns_fallback(self, failing_generator, failing_classifier):
        service = _trends_service(failing_generator, failing_classifier, collector=FakeCollector(error=RuntimeError("boom")))
        result = service.get_trends_for_niche("yoga", ["hot yoga", "yoga mats"])

        assert result.is_fallback
        assert result.trending_keywords == []
        assert [o.title for o in result.opportunities] == [
            "Evergreen content on hot yoga", "Evergreen content on yoga mats",
        ]

    def test_analyze_niche_with_competitors(self, failing_classifier):
        service = _trends_service(FakeGenerator([OPPORTUNITIES_REPLY]), failing_classifier, scraper=FakeScraper())
        analysis = service.analyze_niche(NicheAnalysisRequest(
            niche="yoga", keywords=["hot yoga"], competitor_urls=["https://a.example", "https://b.example"],
        ))
        assert [c.url for c in analysis.competitors] == ["https://a.example", "https://b.example"]
        assert analysis.trends.niche == "yoga"

    def test_competitors_without_scraper(self, failing_generator, failing_classifier):
        reports = _trends_service(failing_generator, failing_classifier).analyze_competitors(["https://a.example"])
        assert reports[0].error == "Could not analyze this site"

    def test_close_closes_collector(self, failing_generator, failing_classifier):
        collector = FakeCollector(_yoga_bundle())
        _trends_service(failing_generator, failing_classifier, collector=collector).close()
        assert collector.closed


NARRATIVE_REPLY = json.dumps([
    {"keyword": "hot yoga", "currentValue": 60, "predictedValues": [65, 70, 75], "explanation": "Summer demand"},
    {"keyword": "yoga mats", "currentValue": 50, "predictedValues": [48, 46, 44], "explanation": "Saturated"},
])


class TestTrendsPredictionService:
    history = {
        "hot yoga": make_points([40, 45, 50, 55, 60]),
        "yoga mats": make_points([50, 50, 50, 50, 50]),
    }

    def test_full_prediction(self, now):
        generator = FakeGenerator(["Interest is moving to heated studios.", NARRATIVE_REPLY, "Film a beginner class\nOpen a summer pass"])
        service = TrendsPredictionService(generator, scheduler=InterventionScheduler(clock=lambda: now))

        result = service.predict_trends("yoga", ["hot yoga", "yoga mats"], self.history, ["Hot yoga studios expand"])

        assert not result.is_fallback
        assert [p.predicted_values for p in result.predictions] == [[65, 70, 75], [48, 46, 44]]
        assert [p.keywords for p in result.intervention_points] == [["hot yoga"]] * 3
        assert result.next_actions == ["Film a beginner class", "Open a summer pass"]
        # raw forecasts: hot yoga [65, 70, 75] (variance 16.67), mats flat -> 30 - 1.7 floors at 30
        assert result.confidence_score == 30.0
        assert "Interest is moving to heated studios." in generator.prompts[1]

    def test_no_articles_skips_insight_call(self, now):
        generator = FakeGenerator([NARRATIVE_REPLY, "Do one thing"])
        service = TrendsPredictionService(generator, scheduler=InterventionScheduler(clock=lambda: now))
        result = service.predict_trends("yoga", ["hot yoga", "yoga mats"], self.history, [])
        assert len(generator.prompts) == 2
        assert result.next_actions == ["Do one thing"]

    def test_missing_history_uses_defaults(self, failing_generator, now):
        service = TrendsPredictionService(failing_generator, scheduler=InterventionScheduler(clock=lambda: now))
        result = service.predict_trends("yoga", ["pilates"], {}, [])

        detail = result.predictions[0]
        assert detail.current_value == 50
        assert detail.predicted_values == [50, 55, 60]
        assert len(result.next_actions) == 5
        assert not result.is_fallback

    def test_pipeline_crash_returns_fallback(self, failing_generator, now, monkeypatch):
        service = TrendsPredictionService(failing_generator, scheduler=InterventionScheduler(clock=lambda: now))

        def explode(*args, **kwargs):
            raise RuntimeError("numeric failure")

        monkeypatch.setattr(service.forecaster, "forecast_all", explode)
        result = service.predict_trends("yoga", ["hot yoga", "yoga mats", "retreats"], self.history, [])

        assert result.is_fallback
        assert result.confidence_score == 35.0
        assert all(p.current_value == 50 and p.predicted_values == [55, 60, 65] for p in result.predictions)
        assert len(result.intervention_points) == 1
        assert result.intervention_points[0].timestamp == now + timedelta(days=30)
        assert result.intervention_points[0].keywords == ["hot yoga", "yoga mats"]

    def test_extended_horizon_fallback(self, failing_generator, now, monkeypatch):
        service = TrendsPredictionService(failing_generator, horizon=6, scheduler=InterventionScheduler(clock=lambda: now))
        monkeypatch.setattr(service.forecaster, "forecast_all", lambda *a: 1 / 0)
        result = service.predict_trends("yoga", ["hot yoga"], {}, [])
        assert result.predictions[0].predicted_values == [55, 60, 65, 70, 75, 80]

    def test_demo_prediction(self, failing_generator, now):
        service = TrendsPredictionService(failing_generator, scheduler=InterventionScheduler(clock=lambda: now))
        result = service.predict_demo("yoga", ["hot yoga", "mats"])

        assert not result.is_fallback
        assert [p.keyword for p in result.predictions] == ["hot yoga", "mats"]
        assert all(len(p.predicted_values) == 3 for p in result.predictions)
        assert 30 <= result.confidence_score <= 95
        # demo headlines reach the insight prompt
        assert "How hot yoga is transforming the market" in failing_generator.prompts[0]
