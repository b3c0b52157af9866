"""
In-memory stand-in for CatalogStore.

Same async method names and signatures, same tenant visibility,
case-insensitive name uniqueness per scope and domain exceptions, so the
services can be exercised without a database.
"""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Iterable, Optional

from common.exceptions import AuthorizationError, ConflictError, NotFoundError
from schemas.catalog_schemas import (
    EmployeeRecord, EmployeeRoleRecord, EmployeeSkillRecord, GradingRecord,
    RequirementRecord, RoleRecord, SkillRecord, SoftSkillRecord, SubRoleRecord
)
from schemas.scoring_schemas import SoftSkillScoreRecord
from services.catalog_store import duplicate_error

SOFT_SKILL_CODES = (
    "communication_effective",
    "active_listening",
    "empathy",
    "emotional_intelligence",
    "teamwork",
    "leadership",
    "critical_thinking",
    "problem_solving",
    "flexibility",
    "time_management",
    "decision_making",
    "resilience",
)


def _visible(record, tenant_id: str) -> bool:
    return record.tenant_id is None or record.tenant_id == tenant_id


def _contains(record, query: str) -> bool:
    q = query.lower()
    return (
        q in record.canonical_name.lower()
        or (record.known_name is not None and q in record.known_name.lower())
        or any(q in synonym.lower() for synonym in record.synonyms)
    )


class FakeCatalogStore:
    def __init__(self):
        self._ids = count(1000)
        self.roles: dict[int, RoleRecord] = {}
        self.sub_roles: dict[int, SubRoleRecord] = {}
        self.skills: dict[int, SkillRecord] = {}
        self.gradings: dict[tuple[int, int], GradingRecord] = {}
        self.soft_skills: dict[int, SoftSkillRecord] = {}
        self.requirements: dict[tuple[int, int], RequirementRecord] = {}
        self.employees: dict[int, EmployeeRecord] = {}
        self.employee_roles: list[EmployeeRoleRecord] = []
        self.employee_skills: list[EmployeeSkillRecord] = []
        self.scores: list[SoftSkillScoreRecord] = []
        # Mirrors AsyncSession autobegin for the reads that precede AI calls.
        self.read_open = False

    # Seeding helpers

    def add_role(self, role_id: int, name: str, known_name: str = None, synonyms=()) -> RoleRecord:
        role = RoleRecord(id=role_id, canonical_name=name, known_name=known_name, synonyms=list(synonyms))
        self.roles[role_id] = role
        return role

    def add_sub_role(
        self,
        sub_role_id: int,
        name: str,
        parent_role_id: int = None,
        known_name: str = None,
        synonyms=(),
        tenant_id: str = None
    ) -> SubRoleRecord:
        parent = self.roles.get(parent_role_id)
        sub_role = SubRoleRecord(
            id=sub_role_id,
            canonical_name=name,
            known_name=known_name,
            synonyms=list(synonyms),
            tenant_id=tenant_id,
            is_custom=tenant_id is not None,
            parent_role_id=parent_role_id,
            parent_role_name=parent.canonical_name if parent else None,
        )
        self.sub_roles[sub_role_id] = sub_role
        return sub_role

    def add_skill(
        self,
        skill_id: int,
        name: str,
        known_name: str = None,
        synonyms=(),
        tenant_id: str = None,
        is_active: bool = True
    ) -> SkillRecord:
        skill = SkillRecord(
            id=skill_id,
            canonical_name=name,
            known_name=known_name,
            synonyms=list(synonyms),
            tenant_id=tenant_id,
            is_custom=tenant_id is not None,
            is_active=is_active,
        )
        self.skills[skill_id] = skill
        return skill

    def add_grading(self, sub_role_id: int, skill_id: int, grading: Optional[float], value: float = None):
        self.gradings[(sub_role_id, skill_id)] = GradingRecord(
            sub_role_id=sub_role_id, skill_id=skill_id, grading=grading, value=value
        )

    def add_soft_skills(self, codes: Iterable[str] = SOFT_SKILL_CODES) -> list[SoftSkillRecord]:
        for index, code in enumerate(codes, start=1):
            self.soft_skills[index] = SoftSkillRecord(
                id=index,
                code=code,
                name=code.replace("_", " ").title(),
                category="interpersonal",
                order_index=index,
            )
        return list(self.soft_skills.values())

    def soft_skill_id(self, code: str) -> int:
        return next(s.id for s in self.soft_skills.values() if s.code == code)

    def add_requirement(
        self,
        role_id: int,
        soft_skill_id: int,
        priority: int = 1,
        weight: float = 1.0,
        is_required: bool = False,
        min_score: int = None,
        target_score: int = None
    ) -> RequirementRecord:
        soft_skill = self.soft_skills.get(soft_skill_id)
        req = RequirementRecord(
            id=next(self._ids),
            role_id=role_id,
            soft_skill_id=soft_skill_id,
            priority=priority,
            weight=weight,
            is_required=is_required,
            min_score=min_score,
            target_score=target_score,
            soft_skill_code=soft_skill.code if soft_skill else None,
            soft_skill_name=soft_skill.name if soft_skill else None,
        )
        self.requirements[(role_id, soft_skill_id)] = req
        return req

    def add_employee(self, employee_id: int, tenant_id: str = "t1", hire_date=None) -> EmployeeRecord:
        employee = EmployeeRecord(id=employee_id, tenant_id=tenant_id, hire_date=hire_date)
        self.employees[employee_id] = employee
        return employee

    def add_employee_role(
        self,
        employee_id: int,
        sub_role_id: int,
        role_id: int = None,
        years_in_role: float = None,
        is_current: bool = True
    ) -> EmployeeRoleRecord:
        sub_role = self.sub_roles.get(sub_role_id)
        role = self.roles.get(role_id)
        record = EmployeeRoleRecord(
            id=next(self._ids),
            employee_id=employee_id,
            role_id=role_id,
            sub_role_id=sub_role_id,
            is_current=is_current,
            years_in_role=years_in_role,
            role_name=role.canonical_name if role else None,
            sub_role_name=sub_role.canonical_name if sub_role else None,
        )
        self.employee_roles.append(record)
        return record

    def add_employee_skill(self, employee_id: int, skill_id: int, proficiency_level: int):
        self.employee_skills.append(EmployeeSkillRecord(
            employee_id=employee_id,
            skill_id=skill_id,
            skill_name=self.skills[skill_id].canonical_name,
            proficiency_level=proficiency_level,
        ))

    def add_score(self, employee_id: int, soft_skill_id: int, normalized_score: int, calculated_at: datetime = None):
        calculated_at = calculated_at or datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=len(self.scores))
        self.scores.append(SoftSkillScoreRecord(
            id=next(self._ids),
            employee_id=employee_id,
            soft_skill_id=soft_skill_id,
            assessment_id="seed",
            raw_score=float(normalized_score),
            normalized_score=normalized_score,
            percentile=50,
            level="intermediate",
            confidence=1.0,
            calculated_at=calculated_at,
        ))

    async def end_read_transaction(self) -> None:
        self.read_open = False

    # Roles

    async def find_role_by_id(self, role_id: int) -> Optional[RoleRecord]:
        return self.roles.get(role_id)

    async def list_roles(self, search: Optional[str] = None) -> list[RoleRecord]:
        self.read_open = True
        roles = [r for r in self.roles.values() if not search or _contains(r, search)]
        return sorted(roles, key=lambda r: (r.canonical_name.lower(), r.id))

    # Sub-roles

    async def find_sub_role_by_id(self, sub_role_id: int, tenant_id: str) -> Optional[SubRoleRecord]:
        sub_role = self.sub_roles.get(sub_role_id)
        return sub_role if sub_role is not None and _visible(sub_role, tenant_id) else None

    async def find_sub_role_by_name(self, name: str, tenant_id: str) -> Optional[SubRoleRecord]:
        self.read_open = True
        matches = [
            s for s in self.sub_roles.values()
            if _visible(s, tenant_id) and s.canonical_name.lower() == name.lower()
        ]
        return min(matches, key=lambda s: (s.is_custom, s.id)) if matches else None

    async def search_sub_roles(
        self,
        query: str,
        tenant_id: str,
        parent_role_id: Optional[int] = None
    ) -> list[SubRoleRecord]:
        return [
            s for s in self.sub_roles.values()
            if _visible(s, tenant_id)
            and _contains(s, query)
            and (parent_role_id is None or s.parent_role_id == parent_role_id)
        ]

    async def list_sub_roles(self, tenant_id: str, parent_role_id: Optional[int] = None) -> list[SubRoleRecord]:
        sub_roles = [
            s for s in self.sub_roles.values()
            if _visible(s, tenant_id) and (parent_role_id is None or s.parent_role_id == parent_role_id)
        ]
        return sorted(sub_roles, key=lambda s: (s.is_custom, s.canonical_name.lower(), s.id))

    async def create_custom_sub_role(
        self,
        tenant_id: str,
        actor_id: str,
        name: str,
        synonyms: list[str],
        parent_role_id: int,
        known_name: Optional[str] = None
    ) -> SubRoleRecord:
        clash = next(
            (
                s for s in self.sub_roles.values()
                if s.tenant_id == tenant_id and s.canonical_name.lower() == name.lower()
            ),
            None,
        )
        if clash is not None:
            raise duplicate_error("Sub-role", name, clash)
        if parent_role_id not in self.roles:
            raise NotFoundError(f"Role {parent_role_id} not found")

        sub_role = SubRoleRecord(
            id=next(self._ids),
            canonical_name=name,
            known_name=known_name,
            synonyms=list(synonyms),
            tenant_id=tenant_id,
            is_custom=True,
            created_by=actor_id,
            parent_role_id=parent_role_id,
            parent_role_name=self.roles[parent_role_id].canonical_name,
        )
        self.sub_roles[sub_role.id] = sub_role
        return sub_role

    async def delete_custom_sub_role(self, sub_role_id: int, tenant_id: str) -> None:
        sub_role = self.sub_roles.get(sub_role_id)
        if sub_role is None:
            raise NotFoundError(f"Sub-role {sub_role_id} not found")
        if not sub_role.is_custom or sub_role.tenant_id != tenant_id:
            raise AuthorizationError("Only the owning tenant can delete a custom sub-role")
        if any(r.sub_role_id == sub_role_id for r in self.employee_roles):
            raise ConflictError(f"Sub-role {sub_role_id} is assigned to an employee role")
        del self.sub_roles[sub_role_id]

    # Skills

    async def find_skill_by_id(self, skill_id: int, tenant_id: str) -> Optional[SkillRecord]:
        skill = self.skills.get(skill_id)
        return skill if skill is not None and _visible(skill, tenant_id) else None

    async def find_skill_by_name(self, name: str, tenant_id: str) -> Optional[SkillRecord]:
        matches = [
            s for s in self.skills.values()
            if _visible(s, tenant_id) and s.canonical_name.lower() == name.lower()
        ]
        return min(matches, key=lambda s: (s.is_custom, s.id)) if matches else None

    async def search_skills(self, query: str, tenant_id: str) -> list[SkillRecord]:
        return [
            s for s in self.skills.values()
            if s.is_active and _visible(s, tenant_id) and _contains(s, query)
        ]

    async def list_skills_page(self, tenant_id: str, offset: int, limit: int) -> tuple[list[SkillRecord], int]:
        skills = sorted(
            (s for s in self.skills.values() if s.is_active and _visible(s, tenant_id)),
            key=lambda s: (s.is_custom, s.canonical_name.lower(), s.id),
        )
        return skills[offset:offset + limit], len(skills)

    async def create_custom_skill(
        self,
        tenant_id: str,
        actor_id: str,
        name: str,
        synonyms: list[str],
        known_name: Optional[str] = None
    ) -> SkillRecord:
        clash = next(
            (
                s for s in self.skills.values()
                if s.tenant_id == tenant_id and s.canonical_name.lower() == name.lower()
            ),
            None,
        )
        if clash is not None:
            raise duplicate_error("Skill", name, clash)
        skill = SkillRecord(
            id=next(self._ids),
            canonical_name=name,
            known_name=known_name,
            synonyms=list(synonyms),
            tenant_id=tenant_id,
            is_custom=True,
            is_active=True,
            created_by=actor_id,
        )
        self.skills[skill.id] = skill
        return skill

    async def soft_delete_custom_skill(self, skill_id: int, tenant_id: str, actor_id: Optional[str] = None) -> None:
        skill = self.skills.get(skill_id)
        if skill is None or not skill.is_active:
            raise NotFoundError(f"Skill {skill_id} not found")
        if not skill.is_custom or skill.tenant_id != tenant_id:
            raise AuthorizationError("Only the owning tenant can delete a custom skill")
        self.skills[skill_id] = skill.model_copy(update={"is_active": False})

    # Grading

    async def get_grading(self, sub_role_id: int, skill_id: int) -> Optional[GradingRecord]:
        return self.gradings.get((sub_role_id, skill_id))

    async def list_gradings(
        self,
        sub_role_ids: Iterable[int],
        skill_ids: Optional[Iterable[int]] = None
    ) -> list[GradingRecord]:
        sub_role_ids = set(sub_role_ids)
        skill_ids = set(skill_ids) if skill_ids is not None else None
        return [
            g for (sub_role_id, skill_id), g in self.gradings.items()
            if sub_role_id in sub_role_ids and (skill_ids is None or skill_id in skill_ids)
        ]

    # Soft skills and role requirements

    async def list_soft_skills(self) -> list[SoftSkillRecord]:
        return sorted(self.soft_skills.values(), key=lambda s: (s.order_index, s.id))

    async def list_role_requirements(self, role_id: int) -> list[RequirementRecord]:
        reqs = [r for (rid, _), r in self.requirements.items() if rid == role_id]
        return sorted(reqs, key=lambda r: (r.priority, r.soft_skill_id))

    async def upsert_role_requirement(
        self,
        role_id: int,
        soft_skill_id: int,
        priority: int,
        weight: float,
        is_required: bool,
        min_score: int,
        target_score: int
    ) -> RequirementRecord:
        if role_id not in self.roles or soft_skill_id not in self.soft_skills:
            raise NotFoundError(f"Role {role_id} or soft skill {soft_skill_id} not found")
        return self.add_requirement(
            role_id, soft_skill_id, priority, weight, is_required, min_score, target_score
        )

    # Employees

    async def get_employee(self, employee_id: int) -> Optional[EmployeeRecord]:
        return self.employees.get(employee_id)

    async def list_employee_roles(self, employee_id: int, current_only: bool = True) -> list[EmployeeRoleRecord]:
        return [
            r for r in self.employee_roles
            if r.employee_id == employee_id and (r.is_current or not current_only)
        ]

    async def list_employee_skills(self, employee_id: int, min_proficiency: int = 1) -> list[EmployeeSkillRecord]:
        return [
            s for s in self.employee_skills
            if s.employee_id == employee_id and s.proficiency_level >= min_proficiency
        ]

    # Soft-skill scores

    async def insert_soft_skill_scores(self, scores: list[SoftSkillScoreRecord]) -> list[SoftSkillScoreRecord]:
        if any(s.employee_id not in self.employees for s in scores):
            raise NotFoundError("Employee or soft skill not found")
        saved = [score.model_copy(update={"id": next(self._ids)}) for score in scores]
        self.scores.extend(saved)
        return saved

    def _newest_first(self, scores: Iterable[SoftSkillScoreRecord]) -> list[SoftSkillScoreRecord]:
        return sorted(scores, key=lambda s: (s.calculated_at, s.id), reverse=True)

    async def list_latest_soft_skill_scores(self, employee_id: int) -> list[SoftSkillScoreRecord]:
        latest = {}
        for score in self._newest_first(s for s in self.scores if s.employee_id == employee_id):
            latest.setdefault(score.soft_skill_id, score)
        return list(latest.values())

    async def list_latest_scores_for_employees(self, employee_ids: Iterable[int]) -> list[SoftSkillScoreRecord]:
        employee_ids = set(employee_ids)
        latest = {}
        for score in self._newest_first(s for s in self.scores if s.employee_id in employee_ids):
            latest.setdefault((score.employee_id, score.soft_skill_id), score)
        return list(latest.values())

    async def list_score_history(self, employee_id: int, per_skill: int = 2) -> dict[int, list[SoftSkillScoreRecord]]:
        history: dict[int, list[SoftSkillScoreRecord]] = {}
        for score in self._newest_first(s for s in self.scores if s.employee_id == employee_id):
            bucket = history.setdefault(score.soft_skill_id, [])
            if len(bucket) < per_skill:
                bucket.append(score)
        return history

    async def score_histograms(self, soft_skill_ids: Iterable[int]) -> dict[int, dict[int, int]]:
        soft_skill_ids = set(soft_skill_ids)
        histograms: dict[int, dict[int, int]] = {}
        for score in self.scores:
            if score.soft_skill_id in soft_skill_ids:
                bucket = histograms.setdefault(score.soft_skill_id, {})
                bucket[score.normalized_score] = bucket.get(score.normalized_score, 0) + 1
        return histograms
