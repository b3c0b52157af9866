"""
Soft-Skill Scoring Engine

Turns one bundle of psychometric responses (Big-Five, DISC, Belbin) into a
normalized 0-100 score per soft skill. Each model present in the bundle
contributes through the static correlation tables in
``constants.soft_skills``; models are blended with fixed weights and the
sum of the weights of the models present is the score's confidence.

Scores are append-only. The newest row per (employee, soft skill) is the
effective one; earlier rows feed the trend and the percentile.
"""

import math
from collections import defaultdict
from datetime import datetime
from statistics import mean, pstdev
from typing import Callable, Optional

from common.common_utils import clamp, round_half_up, round_score, utc_now
from common.exceptions import NotFoundError, ValidationError
from common.logger import logger
from constants.soft_skills import (
    BELBIN, BELBIN_CORRELATIONS, BIG_FIVE, BIG_FIVE_CORRELATIONS, DISC, DISC_CORRELATIONS,
    MODEL_WEIGHTS, NEUTRAL_SCORE, SKILL_LEVELS, SOURCE_WEIGHTS, TEAM_SPREAD_GAP,
    TEAM_STRENGTH_SCORE, TEAM_WEAKNESS_SCORE, TREND_THRESHOLD
)
from schemas.scoring_schemas import (
    Aggregate360Result, AssessmentResponses, ScoreAssessmentResult, SoftSkillProfileEntry,
    SoftSkillScoreRecord, SoftSkillScoreResult, SourceScore, TeamAnalysis, TeamSkillStat, Trend
)
from services.catalog_store import CatalogStore

MIN_RESPONSE_VALUE = 0
MAX_RESPONSE_VALUE = 100
# Float noise from the weighted means is cut before rounding to an integer score
SCORE_PRECISION = 6


def big_five_contribution(code: str, traits: dict[str, float]) -> float:
    """Start from a neutral 50 and move by ``(trait - 50) * weight``; missing traits are neutral."""
    score = NEUTRAL_SCORE
    for trait, weight in BIG_FIVE_CORRELATIONS.get(code, {}).items():
        score += (traits.get(trait, NEUTRAL_SCORE) - NEUTRAL_SCORE) * weight
    return clamp(score, 0, 100)


def weighted_dimension_contribution(code: str, values: dict[str, float], table: dict) -> float:
    """Weighted mean of the correlated dimensions; missing dimensions count as 0."""
    correlations = table.get(code, {})
    total_weight = sum(correlations.values())
    if total_weight <= 0:
        return NEUTRAL_SCORE
    score = sum(values.get(dimension, 0) * weight for dimension, weight in correlations.items())
    return clamp(score / total_weight, 0, 100)


def present_models(responses: AssessmentResponses) -> dict[str, dict[str, float]]:
    """Models whose sub-map carries at least one value."""
    models = {
        BIG_FIVE: responses.big_five,
        DISC: responses.disc,
        BELBIN: responses.belbin,
    }
    return {model: values for model, values in models.items() if values}


def validate_responses(responses: AssessmentResponses) -> None:
    for model, values in present_models(responses).items():
        for key, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
                raise ValidationError(f"{model}.{key} must be a number")
            if value < MIN_RESPONSE_VALUE or value > MAX_RESPONSE_VALUE:
                raise ValidationError(
                    f"{model}.{key} must be between {MIN_RESPONSE_VALUE} and {MAX_RESPONSE_VALUE}"
                )


def skill_level(score: float) -> str:
    for threshold, level in SKILL_LEVELS:
        if score >= threshold:
            return level
    return SKILL_LEVELS[-1][1]


def compute_soft_skill_score(code: str, responses: AssessmentResponses) -> dict:
    """
    Blend the contributions of the models present into one score.

    Returns raw and normalized score, confidence, level and a per-model
    breakdown. With no model present the score is a neutral 50 at zero
    confidence.
    """
    models = present_models(responses)
    contributions = {}
    if BIG_FIVE in models:
        contributions[BIG_FIVE] = big_five_contribution(code, models[BIG_FIVE])
    if DISC in models:
        contributions[DISC] = weighted_dimension_contribution(code, models[DISC], DISC_CORRELATIONS)
    if BELBIN in models:
        contributions[BELBIN] = weighted_dimension_contribution(code, models[BELBIN], BELBIN_CORRELATIONS)

    total_weight = sum(MODEL_WEIGHTS[model] for model in contributions)
    if total_weight > 0:
        weighted = sum(MODEL_WEIGHTS[model] * value for model, value in contributions.items())
        raw_score = round(weighted / total_weight, SCORE_PRECISION)
    else:
        raw_score = NEUTRAL_SCORE

    normalized = round_score(clamp(raw_score, 0, 100))
    return {
        "raw_score": raw_score,
        "normalized_score": normalized,
        "confidence": round(total_weight, 2),
        "level": skill_level(normalized),
        "contributions": {model: round(value, SCORE_PRECISION) for model, value in contributions.items()},
        "weights": {model: MODEL_WEIGHTS[model] for model in contributions},
    }


def percentile_from_histogram(histogram: Optional[dict[int, int]], score: int) -> int:
    """Share of existing scores strictly below ``score``; 50 when there is no history."""
    if not histogram:
        return 50
    total = sum(histogram.values())
    below = sum(count for value, count in histogram.items() if value < score)
    return round_score(below / total * 100)


def score_trend(current: int, previous: Optional[int]) -> Trend:
    if previous is None:
        return Trend.STABLE
    diff = current - previous
    if diff > TREND_THRESHOLD:
        return Trend.IMPROVING
    if diff < -TREND_THRESHOLD:
        return Trend.DECLINING
    return Trend.STABLE


def aggregate_360(sources: list[SourceScore]) -> Aggregate360Result:
    """
    Weighted mean of self, peer and manager scores for one soft skill.

    Confidence grows with the total source weight and the number of
    sources, saturating at three.
    """
    if not sources:
        raise ValidationError("At least one source score is required")

    total_weight = sum(SOURCE_WEIGHTS[s.source] for s in sources)
    weighted = sum(SOURCE_WEIGHTS[s.source] * s.normalized_score for s in sources)
    source_factor = min(len(sources) / 3, 1)
    return Aggregate360Result(
        score=round_score(round(weighted / total_weight, SCORE_PRECISION)),
        confidence=round(clamp(total_weight * source_factor, 0, 1), 4),
        total_weight=round(total_weight, 4),
        sources_used=[s.source for s in sources],
    )


class SoftSkillScoringService:
    def __init__(self, store: CatalogStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    async def _require_employee(self, employee_id: int, tenant_id: Optional[str]):
        employee = await self.store.get_employee(employee_id)
        if employee is None or (tenant_id is not None and employee.tenant_id != tenant_id):
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    async def score_assessment(
        self,
        employee_id: int,
        assessment_id: str,
        responses: AssessmentResponses,
        tenant_id: Optional[str] = None
    ) -> ScoreAssessmentResult:
        if not assessment_id or not str(assessment_id).strip():
            raise ValidationError("assessmentId is required")
        validate_responses(responses)
        await self._require_employee(employee_id, tenant_id)

        soft_skills = await self.store.list_soft_skills()
        histograms = await self.store.score_histograms(s.id for s in soft_skills)
        history = await self.store.list_score_history(employee_id, per_skill=2)
        calculated_at = self.clock()

        records = []
        trends = {}
        for soft_skill in soft_skills:
            computed = compute_soft_skill_score(soft_skill.code, responses)
            prior = history.get(soft_skill.id, [])
            previous = prior[0].normalized_score if prior else None
            trend = score_trend(computed["normalized_score"], previous)
            trends[soft_skill.id] = (trend, previous)
            records.append(SoftSkillScoreRecord(
                employee_id=employee_id,
                soft_skill_id=soft_skill.id,
                assessment_id=str(assessment_id),
                raw_score=computed["raw_score"],
                normalized_score=computed["normalized_score"],
                percentile=percentile_from_histogram(histograms.get(soft_skill.id), computed["normalized_score"]),
                level=computed["level"],
                confidence=computed["confidence"],
                calculated_at=calculated_at,
                score_details={
                    "contributions": computed["contributions"],
                    "weights": computed["weights"],
                    "trend": trend.value,
                    "previousScore": previous,
                    "priorScores": [p.normalized_score for p in prior],
                },
            ))

        saved = await self.store.insert_soft_skill_scores(records) if records else []
        logger.info(f"Scored assessment {assessment_id} for employee {employee_id}: {len(saved)} soft skills")

        by_id = {s.id: s for s in soft_skills}
        return ScoreAssessmentResult(
            employee_id=employee_id,
            assessment_id=str(assessment_id),
            scores=[
                SoftSkillScoreResult(
                    soft_skill_id=score.soft_skill_id,
                    code=by_id[score.soft_skill_id].code,
                    name=by_id[score.soft_skill_id].name,
                    raw_score=score.raw_score,
                    normalized_score=score.normalized_score,
                    percentile=score.percentile,
                    level=score.level,
                    confidence=score.confidence,
                    trend=trends[score.soft_skill_id][0],
                    previous_score=trends[score.soft_skill_id][1],
                    calculated_at=score.calculated_at,
                )
                for score in saved
            ],
        )

    async def get_employee_soft_skill_profile(
        self,
        employee_id: int,
        tenant_id: Optional[str] = None
    ) -> list[SoftSkillProfileEntry]:
        await self._require_employee(employee_id, tenant_id)
        soft_skills = await self.store.list_soft_skills()
        latest = {s.soft_skill_id: s for s in await self.store.list_latest_soft_skill_scores(employee_id)}
        return [
            SoftSkillProfileEntry(
                soft_skill_id=skill.id,
                code=skill.code,
                name=skill.name,
                category=skill.category,
                normalized_score=latest[skill.id].normalized_score,
                level=latest[skill.id].level,
                percentile=latest[skill.id].percentile,
                confidence=latest[skill.id].confidence,
                calculated_at=latest[skill.id].calculated_at,
            )
            for skill in soft_skills
            if skill.id in latest
        ]

    async def get_team_soft_skill_analysis(
        self,
        employee_ids: list[int],
        tenant_id: Optional[str] = None
    ) -> TeamAnalysis:
        employee_ids = list(dict.fromkeys(employee_ids))
        if not employee_ids:
            raise ValidationError("employeeIds must not be empty")
        for employee_id in employee_ids:
            await self._require_employee(employee_id, tenant_id)

        soft_skills = await self.store.list_soft_skills()
        scores_by_skill = defaultdict(list)
        assessed = set()
        for score in await self.store.list_latest_scores_for_employees(employee_ids):
            scores_by_skill[score.soft_skill_id].append(score.normalized_score)
            assessed.add(score.employee_id)

        stats = [
            TeamSkillStat(
                soft_skill_id=skill.id,
                code=skill.code,
                name=skill.name,
                average=round_half_up(mean(scores_by_skill[skill.id]), 1),
                minimum=min(scores_by_skill[skill.id]),
                maximum=max(scores_by_skill[skill.id]),
                spread=round_half_up(pstdev(scores_by_skill[skill.id]), 1),
                sample_size=len(scores_by_skill[skill.id]),
            )
            for skill in soft_skills
            if scores_by_skill.get(skill.id)
        ]

        return TeamAnalysis(
            employee_count=len(employee_ids),
            assessed_count=len(assessed),
            skills=stats,
            strengths=sorted((s for s in stats if s.average >= TEAM_STRENGTH_SCORE), key=lambda s: -s.average),
            weaknesses=sorted((s for s in stats if s.average < TEAM_WEAKNESS_SCORE), key=lambda s: s.average),
            gaps=[s for s in stats if s.spread > TEAM_SPREAD_GAP],
        )
