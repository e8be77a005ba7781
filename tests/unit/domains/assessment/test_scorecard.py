"""Unit tests for end-to-end scorecard assembly."""

from __future__ import annotations

import pytest

from lifescore.core.rules.loader import load_ruleset
from lifescore.core.rules.models import RuleSet
from lifescore.domains.assessment.domain_logic import aggregator
from lifescore.domains.assessment.domain_logic.cohort import Cohort
from lifescore.domains.assessment.domain_logic.scorecard import (
    answers_digest,
    build_scorecard,
    normalize_answers,
    scalar_answer,
)
from lifescore.domains.assessment.domain_logic.scoring_models import CATEGORY_NAMES


# ===========================================================================
# Test: Answer normalization
# ===========================================================================

class TestNormalizeAnswers:
    def test_records_and_pairs(self):
        pairs = normalize_answers([
            {"question_id": "fin_income", "value": 50000},
            {"questionId": "rom_status", "value": "2"},
            ("social_community", 4),
        ])
        assert pairs == [("fin_income", 50000), ("rom_status", "2"), ("social_community", 4)]

    def test_structured_values_reduced_to_scalar(self):
        pairs = normalize_answers([
            {"question_id": "fin_a", "value": {"value": "3", "label": "Three"}},
            {"question_id": "fin_b", "value": {"score": 7}},
            {"question_id": "fin_c", "value": {"index": 1}},
            {"question_id": "fin_d", "value": {"label": "unknown"}},
            {"question_id": "fin_e", "value": [5, 6]},
            {"question_id": "fin_f", "value": []},
        ])
        assert pairs == [
            ("fin_a", "3"),
            ("fin_b", 7),
            ("fin_c", 1),
            ("fin_d", None),
            ("fin_e", 5),
            ("fin_f", None),
        ]

    def test_scalar_answer_matches_normalization(self):
        for value in [{"value": "7"}, {"score": {"index": 2}}, [4, 5], "3", None]:
            assert normalize_answers([("rom_x", value)]) == [("rom_x", scalar_answer(value))]
        assert scalar_answer({"score": {"index": 2}}) == 2

    def test_entries_without_question_id_dropped(self):
        pairs = normalize_answers([{"value": 3}, {"question_id": 12, "value": 3}, "x", None, (1,)])
        assert pairs == []


class TestAnswersDigest:
    def test_order_insensitive(self):
        a = [("fin_income", 1), ("rom_status", "2")]
        assert answers_digest(a) == answers_digest(list(reversed(a)))

    def test_changes_with_values(self):
        assert answers_digest([("fin_income", 1)]) != answers_digest([("fin_income", 2)])

    def test_hex_sha256(self):
        digest = answers_digest([])
        assert len(digest) == 64
        int(digest, 16)


# ===========================================================================
# Test: build_scorecard
# ===========================================================================

class TestBuildScorecard:
    def test_concrete_scenario(self, default_ruleset: RuleSet):
        card = build_scorecard(
            [{"question_id": "health_daily_steps", "value": 10000}],
            default_ruleset,
        )
        assert card.scores.categories.health_fitness == 50
        assert card.scores.overall == 50
        assert card.percentiles.overall == pytest.approx(50.0, abs=1e-6)
        assert card.scored_items == 1
        assert card.skipped_items == []

    def test_skipped_items_reported(self, default_ruleset: RuleSet):
        card = build_scorecard(
            [
                {"question_id": "fin_income", "value": 90000},
                {"question_id": "xyz_colour", "value": "blue"},
                {"question_id": "fin_lottery", "value": 1},
            ],
            default_ruleset,
        )
        assert card.scored_items == 1
        assert card.skipped_items == ["xyz_colour", "fin_lottery"]

    def test_response_shape_without_cohort(self, test_ruleset: RuleSet):
        out = build_scorecard([], test_ruleset).to_dict()
        assert "cohort" not in out
        assert set(out["overall"]) == {"score_0_100", "percentile", "percentile_label"}
        assert [c["id"] for c in out["categories"]] == CATEGORY_NAMES
        assert out["ruleset"] == {"name": "test_rules", "version": "1.0.0"}
        assert out["overall"]["percentile_label"] == "50th"

    def test_response_shape_with_cohort(self, test_ruleset: RuleSet):
        cohort = Cohort.from_profile(29, "female", "FR")
        out = build_scorecard([("health_exercise", 2)], test_ruleset, cohort=cohort).to_dict()
        assert out["cohort"] == {"age_band": "28-32", "sex": "female", "region": "Europe"}
        health = next(c for c in out["categories"] if c["id"] == "health_fitness")
        assert health["score_0_100"] == 30
        assert health["percentile"] < 50

    def test_cohort_specific_stats_used(self, ruleset_doc):
        ruleset_doc["cohort_stats"]["28-32_female_Europe"] = {
            "overall": {"mean": 70, "stddev": 10},
            "financial": {"mean": 70, "stddev": 10},
            "health_fitness": {"mean": 70, "stddev": 10},
            "social": {"mean": 70, "stddev": 10},
            "romantic": {"mean": 70, "stddev": 10},
        }
        ruleset = load_ruleset(ruleset_doc)

        ranked = build_scorecard([], ruleset, cohort=Cohort.from_profile(30, "female", "DE"))
        fallback = build_scorecard([], ruleset, cohort=Cohort.from_profile(30, "male", "DE"))

        assert ranked.percentiles.overall < fallback.percentiles.overall
        assert fallback.percentiles.overall == pytest.approx(50.0, abs=1e-6)

    def test_explicit_cohort_stats_override(self, test_ruleset: RuleSet):
        stats = {
            scope: {"mean": 40, "stddev": 10}
            for scope in ["overall", *CATEGORY_NAMES]
        }
        card = build_scorecard([], test_ruleset, cohort_stats=stats)
        assert card.percentiles.overall > 50

    def test_replay_is_identical(self, default_ruleset: RuleSet):
        answers = [
            {"question_id": "fin_income", "value": 64000},
            {"question_id": "health_sleep_hours", "value": "5"},
            {"question_id": "rom_status", "value": {"value": "3"}},
        ]
        first = build_scorecard(answers, default_ruleset).to_dict()
        second = build_scorecard(list(reversed(answers)), default_ruleset).to_dict()
        assert first == second

    def test_never_raises_for_malformed_answers(self, default_ruleset: RuleSet):
        card = build_scorecard(
            [None, 3, "x", {"question_id": None}, {"question_id": "fin_income", "value": object()}],
            default_ruleset,
        )
        assert card.scored_items == 1
        assert 0 <= card.scores.overall <= 100

    @pytest.mark.parametrize("stddev", [0, -10])
    def test_explicit_cohort_stats_need_positive_stddev(self, test_ruleset: RuleSet, stddev):
        stats = {scope: {"mean": 50, "stddev": 15} for scope in ["overall", *CATEGORY_NAMES]}
        stats["romantic"] = {"mean": 50, "stddev": stddev}
        with pytest.raises(ValueError, match="romantic"):
            build_scorecard([], test_ruleset, cohort_stats=stats)

    def test_each_answer_scored_once(self, default_ruleset: RuleSet, monkeypatch):
        calls: list[str] = []
        real_score_item = aggregator.score_item

        def counting_score_item(rules, question_id, raw_value):
            calls.append(question_id)
            return real_score_item(rules, question_id, raw_value)

        monkeypatch.setattr(aggregator, "score_item", counting_score_item)
        card = build_scorecard(
            [("fin_income", 50000), ("xyz_colour", "blue"), ("rom_status", "1")],
            default_ruleset,
        )
        assert calls == ["fin_income", "xyz_colour", "rom_status"]
        assert card.skipped_items == ["xyz_colour"]
        assert card.scored_items == 2
