"""
Grading Projection

Projects an employee's skills onto each of their current sub-roles for the
radar chart. Every skill with a proficiency above zero is kept and bucketed
by how characteristic it is of the sub-role:

    core        grading >= core threshold
    secondary   0.5 <= grading < core threshold
    tertiary    0 < grading < 0.5
    non-core    grading is NULL or 0

Selection takes core skills first, then secondary, then fills the remaining
slots from tertiary and non-core by proficiency. Non-core skills are
returned, not filtered, so the chart can colour them.
"""

import math
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from common.exceptions import NotFoundError, ValidationError
from schemas.catalog_schemas import (
    EffectiveGrading, EmployeeSkillProjection, GradingRecord, GradingStars, RadarSkill,
    Relevance, RoleSkillProjection, Seniority, SkillGrading
)
from services.catalog_store import CatalogStore
from settings.config import get_settings

SECONDARY_GRADING = 0.5
SENIOR_YEARS = 5
MIDDLE_YEARS = 2
STARS = 5

SENIORITY_ORDER = {Seniority.JUNIOR: 1, Seniority.MIDDLE: 2, Seniority.SENIOR: 3}


def grading_to_stars(grading: Optional[float]) -> GradingStars:
    """Map a grading in [0, 1] to five-star display: full stars plus a partial percentage."""
    if grading is None:
        return GradingStars(full_stars=0, partial_star=0, is_null=True)
    if grading <= 0:
        return GradingStars(full_stars=0, partial_star=0)
    if grading >= 1:
        return GradingStars(full_stars=STARS, partial_star=0)
    scaled = grading * STARS
    full = math.floor(scaled)
    partial = round((scaled - full) * 100)
    if partial >= 100:
        full, partial = full + 1, 0
    return GradingStars(full_stars=full, partial_star=partial)


def classify_relevance(grading: Optional[float], core_threshold: float) -> Relevance:
    if grading is None or grading == 0:
        return Relevance.NON_CORE
    if grading >= core_threshold:
        return Relevance.CORE
    if grading >= SECONDARY_GRADING:
        return Relevance.SECONDARY
    return Relevance.TERTIARY


def seniority_for_years(years: Optional[float]) -> Optional[Seniority]:
    if years is None:
        return None
    if years >= SENIOR_YEARS:
        return Seniority.SENIOR
    if years >= MIDDLE_YEARS:
        return Seniority.MIDDLE
    return Seniority.JUNIOR


def years_since(start: date, today: date) -> float:
    return max((today - start).days, 0) / 365.25


def select_radar_skills(skills: list[RadarSkill], limit: int) -> list[RadarSkill]:
    def by_grading(skill: RadarSkill):
        return (-(skill.grading or 0), -skill.proficiency_level, skill.name.lower(), skill.id)

    def by_proficiency(skill: RadarSkill):
        return (-skill.proficiency_level, -(skill.grading or 0), skill.name.lower(), skill.id)

    core = sorted((s for s in skills if s.relevance == Relevance.CORE), key=by_grading)
    secondary = sorted((s for s in skills if s.relevance == Relevance.SECONDARY), key=by_grading)
    rest = sorted(
        (s for s in skills if s.relevance in (Relevance.TERTIARY, Relevance.NON_CORE)),
        key=by_proficiency,
    )
    return (core + secondary + rest)[:limit]


def effective_grading(
    skill_id: int,
    sub_role_ids: list[int],
    gradings: dict[tuple[int, int], GradingRecord]
) -> EffectiveGrading:
    """
    Highest non-null grading of a skill across several sub-roles.

    Ties keep the first sub-role in ``sub_role_ids``.
    """
    best = None
    source = None
    for sub_role_id in sub_role_ids:
        edge = gradings.get((sub_role_id, skill_id))
        if edge is None or edge.grading is None:
            continue
        if best is None or edge.grading > best:
            best = edge.grading
            source = sub_role_id
    return EffectiveGrading(skill_id=skill_id, grading=best, max_grading_source=source)


def index_gradings(gradings: Iterable[GradingRecord]) -> dict[tuple[int, int], GradingRecord]:
    return {(g.sub_role_id, g.skill_id): g for g in gradings}


class GradingProjectionService:
    def __init__(self, store: CatalogStore, clock: Callable[[], datetime] = None):
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_employee_role_skill_projection(
        self,
        employee_id: int,
        tenant_id: Optional[str] = None,
        limit: Optional[int] = None,
        core_threshold: Optional[float] = None
    ) -> EmployeeSkillProjection:
        settings = get_settings()
        limit = settings.radar_default_limit if limit is None else limit
        core_threshold = settings.radar_core_threshold if core_threshold is None else core_threshold
        if limit < 1:
            raise ValidationError("limit must be >= 1")
        if not 0 < core_threshold <= 1:
            raise ValidationError("coreThreshold must be in (0, 1]")

        employee = await self.store.get_employee(employee_id)
        if employee is None or (tenant_id is not None and employee.tenant_id != tenant_id):
            raise NotFoundError(f"Employee {employee_id} not found")

        roles = [r for r in await self.store.list_employee_roles(employee_id) if r.sub_role_id is not None]
        employee_skills = await self.store.list_employee_skills(employee_id, min_proficiency=1)
        gradings = index_gradings(await self.store.list_gradings(
            {r.sub_role_id for r in roles},
            {s.skill_id for s in employee_skills},
        ))

        projections = []
        for role in roles:
            radar_skills = []
            for employee_skill in employee_skills:
                edge = gradings.get((role.sub_role_id, employee_skill.skill_id))
                grading = edge.grading if edge else None
                radar_skills.append(RadarSkill(
                    id=employee_skill.skill_id,
                    name=employee_skill.skill_name,
                    proficiency_level=employee_skill.proficiency_level,
                    grading=grading,
                    value=edge.value if edge else None,
                    relevance=classify_relevance(grading, core_threshold),
                ))
            projections.append(RoleSkillProjection(
                role_id=role.role_id,
                role_name=role.role_name,
                sub_role_id=role.sub_role_id,
                sub_role_name=role.sub_role_name,
                display_name=role.sub_role_name or role.role_name or f"Sub-role {role.sub_role_id}",
                seniority=seniority_for_years(role.years_in_role),
                years_in_role=role.years_in_role,
                skills=select_radar_skills(radar_skills, limit),
            ))

        return EmployeeSkillProjection(
            employee_id=employee_id,
            seniority=self._overall_seniority(projections, employee.hire_date),
            roles=projections,
        )

    def _overall_seniority(self, projections: list[RoleSkillProjection], hire_date: Optional[date]) -> Optional[Seniority]:
        levels = [p.seniority for p in projections if p.seniority is not None]
        if levels:
            return max(levels, key=SENIORITY_ORDER.get)
        if hire_date is not None:
            return seniority_for_years(years_since(hire_date, self.clock().date()))
        return None

    async def get_effective_gradings(
        self,
        skill_ids: Iterable[int],
        sub_role_ids: list[int]
    ) -> dict[int, EffectiveGrading]:
        skill_ids = list(skill_ids)
        gradings = index_gradings(await self.store.list_gradings(sub_role_ids, skill_ids))
        return {skill_id: effective_grading(skill_id, sub_role_ids, gradings) for skill_id in skill_ids}

    async def get_skill_grading(self, sub_role_id: int, skill_id: int, tenant_id: str) -> SkillGrading:
        if await self.store.find_sub_role_by_id(sub_role_id, tenant_id) is None:
            raise NotFoundError(f"Sub-role {sub_role_id} not found")
        if await self.store.find_skill_by_id(skill_id, tenant_id) is None:
            raise NotFoundError(f"Skill {skill_id} not found")

        edge = await self.store.get_grading(sub_role_id, skill_id)
        grading = edge.grading if edge else None
        return SkillGrading(
            sub_role_id=sub_role_id,
            skill_id=skill_id,
            grading=grading,
            value=edge.value if edge else None,
            grading_stars=grading_to_stars(grading),
        )
