"""
Role-Fit Calculator

Compares an employee's latest soft-skill scores with a role's requirements.
Per requirement: ``gap = target - current`` (a missing score counts as 0,
a missing target as 70), ``achieved`` when the gap is <= 0, ``close`` when
it is <= 10, else ``needsWork``. The overall fit is the weight-averaged
``min(current / target, 1)`` as a percentage.
"""

import logging
from typing import Optional

from common.common_utils import round_half_up
from common.exceptions import NotFoundError, ValidationError
from constants.soft_skills import (
    CLOSE_GAP, DEFAULT_MIN_SCORE, DEFAULT_TARGET_SCORE, FALLBACK_TARGET_SCORE,
    HIGH_PRIORITY_CUTOFF, HIGH_PRIORITY_MIN_SCORE, HIGH_PRIORITY_TARGET_SCORE
)
from schemas.catalog_schemas import RequirementRecord
from schemas.scoring_schemas import (
    FitStatus, RequirementFit, RequirementUpsert, RequirementView, RoleFitResult, RoleRequirements
)
from services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

CRITICAL_MAX_PRIORITY = 2
IMPORTANT_MAX_PRIORITY = 4
INSIGHT_COUNT = 3


def default_min_score(priority: int) -> int:
    return HIGH_PRIORITY_MIN_SCORE if priority <= HIGH_PRIORITY_CUTOFF else DEFAULT_MIN_SCORE


def default_target_score(priority: int) -> int:
    return HIGH_PRIORITY_TARGET_SCORE if priority <= HIGH_PRIORITY_CUTOFF else DEFAULT_TARGET_SCORE


def priority_group(priority: int) -> str:
    if priority <= CRITICAL_MAX_PRIORITY:
        return "critical"
    if priority <= IMPORTANT_MAX_PRIORITY:
        return "important"
    return "supportive"


def fit_status(gap: int) -> FitStatus:
    if gap <= 0:
        return FitStatus.ACHIEVED
    if gap <= CLOSE_GAP:
        return FitStatus.CLOSE
    return FitStatus.NEEDS_WORK


def fit_ratio(current: float, target: float) -> float:
    if target <= 0:
        return 1.0
    return min(current / target, 1.0)


def overall_fit_score(fits: list[RequirementFit]) -> float:
    """Weight-averaged attainment in [0, 100]; 0 when the role has no requirements."""
    total_weight = sum(f.weight for f in fits)
    if total_weight <= 0:
        return 0.0
    attained = sum(fit_ratio(f.current_score, f.target_score) * f.weight for f in fits)
    return round_half_up(attained / total_weight * 100, 1)


def evaluate_requirement(req: RequirementRecord, current_score: int) -> RequirementFit:
    target = req.target_score if req.target_score is not None else FALLBACK_TARGET_SCORE
    gap = target - current_score
    return RequirementFit(
        soft_skill_id=req.soft_skill_id,
        code=req.soft_skill_code,
        name=req.soft_skill_name,
        priority=req.priority,
        weight=req.weight,
        is_required=req.is_required,
        current_score=current_score,
        target_score=target,
        min_score=req.min_score,
        gap=gap,
        status=fit_status(gap),
        meets_minimum=req.min_score is None or current_score >= req.min_score,
    )


class RoleFitService:
    def __init__(self, store: CatalogStore):
        self.store = store

    async def _require_role(self, role_id: int):
        role = await self.store.find_role_by_id(role_id)
        if role is None:
            raise NotFoundError(f"Role {role_id} not found")
        return role

    async def get_role_skill_requirements(self, role_id: int) -> RoleRequirements:
        await self._require_role(role_id)
        grouped = {"critical": [], "important": [], "supportive": []}
        for req in await self.store.list_role_requirements(role_id):
            grouped[priority_group(req.priority)].append(RequirementView(
                soft_skill_id=req.soft_skill_id,
                code=req.soft_skill_code,
                name=req.soft_skill_name,
                priority=req.priority,
                weight=req.weight,
                is_required=req.is_required,
                min_score=req.min_score if req.min_score is not None else default_min_score(req.priority),
                target_score=(
                    req.target_score if req.target_score is not None else default_target_score(req.priority)
                ),
            ))
        return RoleRequirements(role_id=role_id, **grouped)

    async def upsert_role_requirement(self, role_id: int, payload: RequirementUpsert) -> RequirementView:
        await self._require_role(role_id)
        min_score = payload.min_score if payload.min_score is not None else default_min_score(payload.priority)
        target_score = (
            payload.target_score if payload.target_score is not None else default_target_score(payload.priority)
        )
        if min_score > target_score:
            raise ValidationError("minScore must not exceed targetScore")

        saved = await self.store.upsert_role_requirement(
            role_id=role_id,
            soft_skill_id=payload.soft_skill_id,
            priority=payload.priority,
            weight=payload.weight,
            is_required=payload.is_required,
            min_score=min_score,
            target_score=target_score,
        )
        logger.info(f"Saved requirement of role {role_id} for soft skill {payload.soft_skill_id}")
        return RequirementView(
            soft_skill_id=saved.soft_skill_id,
            priority=saved.priority,
            weight=saved.weight,
            is_required=saved.is_required,
            min_score=saved.min_score,
            target_score=saved.target_score,
        )

    async def get_role_fit(self, employee_id: int, role_id: int, tenant_id: Optional[str] = None) -> RoleFitResult:
        await self._require_role(role_id)
        employee = await self.store.get_employee(employee_id)
        if employee is None or (tenant_id is not None and employee.tenant_id != tenant_id):
            raise NotFoundError(f"Employee {employee_id} not found")

        requirements = await self.store.list_role_requirements(role_id)
        latest = {s.soft_skill_id: s.normalized_score for s in await self.store.list_latest_soft_skill_scores(employee_id)}

        fits = [evaluate_requirement(req, latest.get(req.soft_skill_id, 0)) for req in requirements]
        grouped = {"critical": [], "important": [], "supportive": []}
        for fit in fits:
            grouped[priority_group(fit.priority)].append(fit)

        achieved = [f for f in fits if f.status == FitStatus.ACHIEVED]
        unmet = [f for f in fits if f.status != FitStatus.ACHIEVED]
        return RoleFitResult(
            employee_id=employee_id,
            role_id=role_id,
            overall_fit_score=overall_fit_score(fits),
            requirements=fits,
            strengths=sorted(achieved, key=lambda f: (f.priority, -f.current_score))[:INSIGHT_COUNT],
            development_areas=sorted(unmet, key=lambda f: (f.priority, -f.gap))[:INSIGHT_COUNT],
            readiness=all(f.meets_minimum for f in fits),
            **grouped,
        )
