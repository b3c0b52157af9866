"""Test soft-skill scoring, trends, percentiles, team analysis and 360 aggregation."""

from datetime import datetime, timedelta, timezone
from itertools import product

import pytest

from common.exceptions import NotFoundError, ValidationError
from schemas.scoring_schemas import AssessmentResponses, SourceScore, Trend
from services.soft_skill_scoring_service import (
    SoftSkillScoringService, aggregate_360, big_five_contribution, compute_soft_skill_score,
    percentile_from_histogram, score_trend, skill_level, weighted_dimension_contribution
)
from constants.soft_skills import DISC_CORRELATIONS
from tests.conftest import OTHER_TENANT, TENANT

S5_RESPONSES = AssessmentResponses(
    big_five={"extraversion": 70, "agreeableness": 60},
    disc={"D": 80, "I": 70, "S": 50, "C": 40},
)


@pytest.fixture
def scoring_store(store):
    store.add_soft_skills()
    store.add_employee(1, tenant_id=TENANT)
    store.add_employee(2, tenant_id=TENANT)
    store.add_employee(3, tenant_id=TENANT)
    store.add_employee(9, tenant_id=OTHER_TENANT)
    return store


@pytest.fixture
def scoring(scoring_store, fixed_now) -> SoftSkillScoringService:
    return SoftSkillScoringService(scoring_store, clock=lambda: fixed_now)


class TestComputeScore:
    def test_blends_big_five_and_disc(self):
        result = compute_soft_skill_score("communication_effective", S5_RESPONSES)

        assert result["contributions"]["big_five"] == pytest.approx(67)
        assert result["contributions"]["disc"] == pytest.approx(66)
        assert result["raw_score"] == pytest.approx(66.5)
        assert result["normalized_score"] == 67
        assert result["confidence"] == 0.70
        assert result["level"] == "advanced"

    def test_no_models_is_neutral_with_zero_confidence(self):
        result = compute_soft_skill_score("teamwork", AssessmentResponses())

        assert result["normalized_score"] == 50
        assert result["confidence"] == 0

    def test_missing_big_five_trait_is_neutral(self):
        assert big_five_contribution("communication_effective", {"extraversion": 50}) == 50

    def test_zero_trait_is_not_treated_as_missing(self):
        score = big_five_contribution("communication_effective", {"extraversion": 0, "agreeableness": 50})
        assert score == pytest.approx(15)

    def test_missing_disc_dimension_counts_as_zero(self):
        assert weighted_dimension_contribution("leadership", {"D": 100}, DISC_CORRELATIONS) == pytest.approx(70)

    @pytest.mark.parametrize("value", [0, 25, 100])
    def test_all_models_bounded_with_full_confidence(self, value):
        responses = AssessmentResponses(
            big_five={t: value for t in ("openness", "conscientiousness", "extraversion",
                                         "agreeableness", "neuroticism")},
            disc={d: value for d in "DISC"},
            belbin={r: value for r in ("plant", "shaper", "coordinator", "team_worker", "implementer",
                                       "completer_finisher", "monitor_evaluator", "resource_investigator")},
        )
        for code in DISC_CORRELATIONS:
            result = compute_soft_skill_score(code, responses)
            assert 0 <= result["normalized_score"] <= 100
            assert result["confidence"] == 1.0

    @pytest.mark.parametrize("big_five, disc, belbin", list(product([None, {"openness": 90}], repeat=3)))
    def test_confidence_is_sum_of_present_weights(self, big_five, disc, belbin):
        responses = AssessmentResponses(
            big_five=big_five,
            disc={"D": 90} if disc else None,
            belbin={"plant": 90} if belbin else None,
        )
        expected = round(0.35 * bool(big_five) + 0.35 * bool(disc) + 0.30 * bool(belbin), 2)

        assert compute_soft_skill_score("problem_solving", responses)["confidence"] == expected

    @pytest.mark.parametrize("score, level", [(0, "beginner"), (39, "beginner"), (40, "intermediate"),
                                              (60, "advanced"), (79, "advanced"), (80, "expert")])
    def test_levels(self, score, level):
        assert skill_level(score) == level


class TestPercentileAndTrend:
    def test_percentile_without_history(self):
        assert percentile_from_histogram({}, 70) == 50

    def test_percentile_counts_strictly_lower(self):
        assert percentile_from_histogram({40: 1, 60: 1, 70: 1, 80: 1}, 70) == 50

    @pytest.mark.parametrize("current, previous, trend", [
        (70, None, Trend.STABLE),
        (70, 65, Trend.STABLE),
        (71, 65, Trend.IMPROVING),
        (59, 65, Trend.DECLINING),
    ])
    def test_trend(self, current, previous, trend):
        assert score_trend(current, previous) == trend


class TestScoreAssessment:
    async def test_appends_one_score_per_soft_skill(self, scoring, scoring_store, fixed_now):
        result = await scoring.score_assessment(1, "a-1", S5_RESPONSES, tenant_id=TENANT)

        assert len(result.scores) == len(scoring_store.soft_skills)
        assert len(scoring_store.scores) == len(scoring_store.soft_skills)
        communication = next(s for s in result.scores if s.code == "communication_effective")
        assert communication.normalized_score == 67
        assert communication.level == "advanced"
        assert communication.confidence == 0.70
        assert communication.trend == Trend.STABLE
        assert communication.previous_score is None
        assert communication.calculated_at == fixed_now

    async def test_same_inputs_same_outcome(self, scoring):
        first = await scoring.score_assessment(1, "a-1", S5_RESPONSES, tenant_id=TENANT)
        second = await scoring.score_assessment(1, "a-1", S5_RESPONSES, tenant_id=TENANT)

        def outcome(result):
            return [(s.soft_skill_id, s.normalized_score, s.level, s.confidence) for s in result.scores]

        assert outcome(first) == outcome(second)

    async def test_trend_against_previous_score(self, scoring, scoring_store):
        skill_id = scoring_store.soft_skill_id("communication_effective")
        scoring_store.add_score(1, skill_id, 55)

        result = await scoring.score_assessment(1, "a-2", S5_RESPONSES, tenant_id=TENANT)

        communication = next(s for s in result.scores if s.soft_skill_id == skill_id)
        assert communication.previous_score == 55
        assert communication.trend == Trend.IMPROVING

    async def test_percentile_uses_prior_scores(self, scoring, scoring_store):
        skill_id = scoring_store.soft_skill_id("communication_effective")
        for employee_id, score in [(2, 40), (3, 60), (2, 80), (3, 90)]:
            scoring_store.add_score(employee_id, skill_id, score)

        result = await scoring.score_assessment(1, "a-1", S5_RESPONSES, tenant_id=TENANT)

        communication = next(s for s in result.scores if s.soft_skill_id == skill_id)
        assert communication.percentile == 50

    async def test_out_of_range_response(self, scoring, scoring_store):
        with pytest.raises(ValidationError):
            await scoring.score_assessment(1, "a-1", AssessmentResponses(disc={"D": 120}), tenant_id=TENANT)

        assert scoring_store.scores == []

    async def test_blank_assessment_id(self, scoring):
        with pytest.raises(ValidationError):
            await scoring.score_assessment(1, " ", S5_RESPONSES, tenant_id=TENANT)

    async def test_unknown_or_foreign_employee(self, scoring):
        with pytest.raises(NotFoundError):
            await scoring.score_assessment(404, "a-1", S5_RESPONSES, tenant_id=TENANT)
        with pytest.raises(NotFoundError):
            await scoring.score_assessment(9, "a-1", S5_RESPONSES, tenant_id=TENANT)


class TestProfileAndTeam:
    async def test_profile_uses_latest_score(self, scoring, scoring_store):
        skill_id = scoring_store.soft_skill_id("teamwork")
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        scoring_store.add_score(1, skill_id, 40, calculated_at=base)
        scoring_store.add_score(1, skill_id, 75, calculated_at=base + timedelta(days=30))

        profile = await scoring.get_employee_soft_skill_profile(1, tenant_id=TENANT)

        assert [(p.code, p.normalized_score) for p in profile] == [("teamwork", 75)]

    async def test_team_analysis(self, scoring, scoring_store):
        teamwork = scoring_store.soft_skill_id("teamwork")
        leadership = scoring_store.soft_skill_id("leadership")
        empathy = scoring_store.soft_skill_id("empathy")
        for employee_id, score in [(1, 80), (2, 70), (3, 75)]:
            scoring_store.add_score(employee_id, teamwork, score)
        for employee_id, score in [(1, 40), (2, 45)]:
            scoring_store.add_score(employee_id, leadership, score)
        for employee_id, score in [(1, 20), (2, 90)]:
            scoring_store.add_score(employee_id, empathy, score)

        analysis = await scoring.get_team_soft_skill_analysis([1, 2, 3, 2], tenant_id=TENANT)

        assert analysis.employee_count == 3
        assert analysis.assessed_count == 3
        stats = {s.code: s for s in analysis.skills}
        assert stats["teamwork"].average == 75.0
        assert stats["teamwork"].minimum == 70
        assert stats["teamwork"].maximum == 80
        assert [s.code for s in analysis.strengths] == ["teamwork"]
        assert [s.code for s in analysis.weaknesses] == ["leadership"]
        assert [s.code for s in analysis.gaps] == ["empathy"]
        assert stats["empathy"].spread == 35.0

    async def test_team_analysis_rejects_foreign_employee(self, scoring):
        with pytest.raises(NotFoundError):
            await scoring.get_team_soft_skill_analysis([1, 9], tenant_id=TENANT)


class TestAggregate360:
    def test_weighted_mean(self):
        result = aggregate_360([
            SourceScore(source="self", normalized_score=60),
            SourceScore(source="peer", normalized_score=80),
            SourceScore(source="manager", normalized_score=90),
        ])

        # (60*0.25 + 80*0.35 + 90*0.40) / 1.0
        assert result.score == 79
        assert result.confidence == 1.0
        assert result.sources_used == ["self", "peer", "manager"]

    def test_single_source_has_reduced_confidence(self):
        result = aggregate_360([SourceScore(source="manager", normalized_score=70)])

        assert result.score == 70
        assert result.confidence == pytest.approx(0.1333, abs=1e-4)

    def test_unknown_source_is_rejected(self):
        with pytest.raises(ValueError):
            SourceScore(source="customer", normalized_score=70)

    def test_no_sources(self):
        with pytest.raises(ValidationError):
            aggregate_360([])
