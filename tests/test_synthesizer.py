import json

import pytest

from conftest import FakeGenerator
from trend_engine.models import AggregatedTrend, TextItem
from trend_engine.synthesizer import (
    OpportunitySynthesizer,
    build_opportunity,
    extract_opportunities_from_text,
    fallback_opportunities,
    parse_opportunities,
    parse_predictions,
)

FREE_TEXT_REPLY = """Here are some ideas for the niche.

Opportunity 1: Hot yoga for beginners
Justification: Searches grew 40% this month.
Suggested titles:
- Hot yoga 101
- What to expect in your first hot yoga class

Opportunity 2: Eco-friendly yoga mats
Growth: 35%
"""


class TestOpportunityParsing:
    def test_json_list(self):
        reply = json.dumps([
            {"id": 7, "title": "Hot yoga", "justification": "Rising fast",
             "suggestedTitles": ["A", "B", "C", "D"], "approach": "Guides", "growth": 75},
            {"title": "Yoga mats", "justification": "Steady", "suggestedTitles": ["E"]},
        ])
        opportunities = parse_opportunities(reply, "yoga", ["hot yoga"])
        assert [o.id for o in opportunities] == [1, 2]
        assert opportunities[0].suggested_titles == ["A", "B", "C"]
        assert opportunities[0].estimated_growth == 75
        assert opportunities[0].priority_score == 75
        assert opportunities[1].priority_score == 50
        assert opportunities[1].approach is None

    def test_fenced_object_with_list_key(self):
        reply = '```json\n{"oportunidades": [{"titulo": "Yoga en casa", "justificacion": "Crece"}]}\n```'
        opportunities = parse_opportunities(reply, "yoga")
        assert opportunities[0].title == "Yoga en casa"
        assert opportunities[0].justification == "Crece"

    def test_missing_fields_get_placeholders(self):
        opportunity = parse_opportunities('[{"justification": "Interest is rising"}]', "yoga")[0]
        assert opportunity.title == "Opportunity 1"
        assert opportunity.suggested_titles == ["Suggested title for opportunity 1"]

    def test_free_text_sections(self):
        opportunities = parse_opportunities(FREE_TEXT_REPLY, "yoga", ["hot yoga"])
        assert len(opportunities) == 2

        first, second = opportunities
        assert first.title == "Hot yoga for beginners"
        assert first.justification == "Searches grew 40% this month."
        assert first.suggested_titles == ["Hot yoga 101", "What to expect in your first hot yoga class"]
        assert first.priority_score == 50

        assert second.title == "Eco-friendly yoga mats"
        assert second.suggested_titles == ["Suggested title for opportunity 2"]
        assert second.estimated_growth == 35.0
        assert "Eco-friendly yoga mats" in second.justification

    def test_unmarked_text_is_kept_whole(self):
        opportunities = extract_opportunities_from_text("Focus on short videos about morning routines.")
        assert len(opportunities) == 1
        assert opportunities[0].title == "Opportunity 1"
        assert opportunities[0].justification == "Focus on short videos about morning routines."

    def test_empty_reply_uses_generic_opportunities(self):
        opportunities = parse_opportunities("", "yoga", ["hot yoga", "yoga mats", "pilates", "barre"])
        assert [o.title for o in opportunities] == [
            "Evergreen content on hot yoga",
            "Evergreen content on yoga mats",
            "Evergreen content on pilates",
        ]

    def test_empty_json_list_uses_generic_opportunities(self):
        opportunities = parse_opportunities("[]", "yoga", [])
        assert [o.title for o in opportunities] == ["Evergreen content on yoga"]

    @pytest.mark.parametrize("reply", [
        "Searches for home yoga rose sharply in [2024] as studios closed; beginner guides look promising.",
        'Readers keep asking about gear like ["mats", "props"] and short morning flows.',
    ])
    def test_prose_with_bracketed_fragment_is_kept(self, reply):
        opportunities = parse_opportunities(reply, "yoga", ["hot yoga"])
        assert len(opportunities) == 1
        assert opportunities[0].justification == reply
        assert not opportunities[0].title.startswith("Evergreen")


def test_build_opportunity_clamps_priority():
    opportunity = build_opportunity(1, "Title", None, "Only one", estimated_growth=250)
    assert opportunity.priority_score == 100
    assert opportunity.estimated_growth == 250
    assert opportunity.justification == "Title"
    assert opportunity.suggested_titles == ["Only one"]


def test_fallback_opportunities_for_niche_only():
    opportunities = fallback_opportunities("yoga")
    assert len(opportunities) == 1
    assert "yoga" in opportunities[0].justification


class TestPredictionParsing:
    forecasts = {"hot yoga": [40, 50, 60], "yoga mats": [30, 30, 30]}
    current = {"hot yoga": 35, "yoga mats": 30}

    def test_json_reply_matches_keywords_case_insensitively(self):
        reply = json.dumps([
            {"keyword": "HOT YOGA", "currentValue": 36, "predictedValues": [45, 55, 120], "explanation": "Summer peak"},
            {"keyword": "unrelated", "currentValue": 10, "predictedValues": [1, 2, 3], "explanation": "x"},
        ])
        details = parse_predictions(reply, ["hot yoga", "yoga mats"], self.forecasts, self.current)
        assert [d.keyword for d in details] == ["hot yoga", "yoga mats"]
        assert details[0].current_value == 36
        assert details[0].predicted_values == [45, 55, 100]
        assert details[0].explanation == "Summer peak"
        # skipped keyword falls back to the regression output
        assert details[1].predicted_values == [30, 30, 30]
        assert details[1].current_value == 30

    def test_wrong_length_uses_regression_values(self):
        reply = json.dumps([{"keyword": "hot yoga", "predictedValues": [1, 2], "explanation": "Short"}])
        details = parse_predictions(reply, ["hot yoga"], self.forecasts, self.current)
        assert details[0].predicted_values == [40, 50, 60]
        assert details[0].current_value == 35
        assert details[0].explanation == "Short"

    def test_prose_reply_keeps_regression_and_lifts_explanation(self):
        reply = "Hot yoga will keep climbing through the summer. Mats are flat."
        details = parse_predictions(reply, ["hot yoga", "yoga mats"], self.forecasts, self.current)
        assert details[0].predicted_values == [40, 50, 60]
        assert details[0].explanation == "Hot yoga will keep climbing through the summer."
        assert details[1].explanation == 'Forecast based on the historical trend for "yoga mats".'

    def test_bracketed_number_in_prose_still_lifts_explanation(self):
        reply = "Hot yoga doubled since [2023] and keeps climbing."
        details = parse_predictions(reply, ["hot yoga"], self.forecasts, self.current)
        assert details[0].predicted_values == [40, 50, 60]
        assert details[0].explanation == reply


class TestOpportunitySynthesizer:
    def test_discover_sends_trends_and_articles(self):
        generator = FakeGenerator(['[{"title": "Hot yoga", "justification": "Rising"}]'])
        trends = [AggregatedTrend(keyword="hot yoga", growth_percent=25.0, simulated=True)]
        articles = [TextItem(title="Hot yoga studios expand", summary="Studios are opening.")]

        opportunities = OpportunitySynthesizer(generator).discover("yoga", ["hot yoga"], trends, articles)

        assert opportunities[0].title == "Hot yoga"
        prompt = generator.prompts[0]
        assert "hot yoga: +25.0% growth (simulated data)" in prompt
        assert "Hot yoga studios expand: Studios are opening." in prompt

    def test_discover_survives_generation_failure(self, failing_generator):
        opportunities = OpportunitySynthesizer(failing_generator).discover("yoga", ["hot yoga"], [], [])
        assert [o.title for o in opportunities] == ["Evergreen content on hot yoga"]

    def test_narrate_falls_back_to_regression(self, failing_generator):
        details = OpportunitySynthesizer(failing_generator).narrate(
            "yoga", ["hot yoga"], {"hot yoga": [40, 50, 60]}, {"hot yoga": 35}, "insight"
        )
        assert details[0].predicted_values == [40, 50, 60]
