"""
Catalog Store

The only path to persistence for the catalog and scoring services. Every
read honours tenant visibility (``tenant_id IS NULL OR tenant_id = T``);
every write is scoped to the caller's tenant and runs in its own
transaction through ``write_transaction``.

Methods return pydantic records, never ORM instances, so nothing is
lazily loaded once a call has returned.
"""

from typing import Iterable, Optional

from sqlalchemy import and_, delete, exists, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from common.db_utils import (
    is_foreign_key_violation, is_unique_violation, translate_db_errors, write_transaction
)
from common.exceptions import (
    AuthorizationError, ConflictError, DuplicateError, InternalError, NotFoundError
)
from common.logger import logger
from models.catalog import (
    GradingEdge, Role, RoleSoftSkillRequirement, RoleSubRole, Skill, SoftSkill, SubRole
)
from models.employee import Employee, EmployeeRole, EmployeeSkill, SoftSkillScore
from schemas.catalog_schemas import (
    EmployeeRecord, EmployeeRoleRecord, EmployeeSkillRecord, GradingRecord,
    RequirementRecord, RoleRecord, SkillRecord, SoftSkillRecord, SubRoleRecord
)
from schemas.scoring_schemas import SoftSkillScoreRecord

SCOPE_GLOBAL = "global"
SCOPE_TENANT = "tenant"


def like_pattern(query: str) -> str:
    """Build a case-insensitive ``%q%`` pattern with LIKE wildcards escaped."""
    escaped = (
        query.lower()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


def duplicate_error(kind: str, name: str, existing) -> DuplicateError:
    """Name the scope (global or tenant) that already holds ``name``."""
    scope = SCOPE_GLOBAL if existing is not None and existing.tenant_id is None else SCOPE_TENANT
    if scope == SCOPE_GLOBAL:
        message = f"{kind} '{name}' already exists in the global catalog"
    else:
        message = f"{kind} '{name}' already exists for this tenant"
    return DuplicateError(message, scope=scope)


def _visible_to(model, tenant_id: str):
    return or_(model.tenant_id.is_(None), model.tenant_id == tenant_id)


def _name_matches(model, pattern: str):
    # render_derived names the column in the alias: unnest(...) AS anon_1(synonym)
    synonym = func.unnest(model.synonyms).table_valued("synonym").render_derived()
    return or_(
        func.lower(model.canonical_name).like(pattern, escape="\\"),
        func.lower(model.known_name).like(pattern, escape="\\"),
        exists(
            select(1)
            .select_from(synonym)
            .where(func.lower(synonym.c.synonym).like(pattern, escape="\\"))
        ),
    )


def _sub_role_record(sub_role: SubRole, parent_role_id=None, parent_role_name=None) -> SubRoleRecord:
    record = SubRoleRecord.model_validate(sub_role)
    return record.model_copy(update={
        "synonyms": list(sub_role.synonyms or []),
        "parent_role_id": parent_role_id,
        "parent_role_name": parent_role_name,
    })


class CatalogStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    @translate_db_errors
    async def end_read_transaction(self) -> None:
        """Release the connection held by reads so nothing stays idle in transaction."""
        if self.db.in_transaction():
            await self.db.rollback()

    # Roles

    @translate_db_errors
    async def find_role_by_id(self, role_id: int) -> Optional[RoleRecord]:
        role = await self.db.get(Role, role_id)
        return RoleRecord.model_validate(role) if role else None

    @translate_db_errors
    async def list_roles(self, search: Optional[str] = None) -> list[RoleRecord]:
        stmt = select(Role)
        if search:
            stmt = stmt.where(_name_matches(Role, like_pattern(search)))
        stmt = stmt.order_by(func.lower(Role.canonical_name), Role.id)
        result = await self.db.execute(stmt)
        return [RoleRecord.model_validate(role) for role in result.scalars().all()]

    # Sub-roles

    def _sub_role_select(self):
        return (
            select(SubRole, RoleSubRole.role_id, Role.canonical_name)
            .outerjoin(RoleSubRole, RoleSubRole.sub_role_id == SubRole.id)
            .outerjoin(Role, Role.id == RoleSubRole.role_id)
        )

    @translate_db_errors
    async def find_sub_role_by_id(self, sub_role_id: int, tenant_id: str) -> Optional[SubRoleRecord]:
        stmt = self._sub_role_select().where(
            and_(SubRole.id == sub_role_id, _visible_to(SubRole, tenant_id))
        )
        row = (await self.db.execute(stmt)).first()
        if row is None:
            return None
        return _sub_role_record(*row)

    @translate_db_errors
    async def find_sub_role_by_name(self, name: str, tenant_id: str) -> Optional[SubRoleRecord]:
        """Case-insensitive lookup over the union of global and the tenant's rows."""
        stmt = (
            self._sub_role_select()
            .where(and_(
                func.lower(SubRole.canonical_name) == name.lower(),
                _visible_to(SubRole, tenant_id),
            ))
            .order_by(SubRole.is_custom, SubRole.id)
        )
        row = (await self.db.execute(stmt)).first()
        if row is None:
            return None
        return _sub_role_record(*row)

    @translate_db_errors
    async def search_sub_roles(
        self,
        query: str,
        tenant_id: str,
        parent_role_id: Optional[int] = None
    ) -> list[SubRoleRecord]:
        """Visible sub-roles whose name, known name or any synonym contains ``query``. Unranked."""
        stmt = self._sub_role_select().where(
            and_(_visible_to(SubRole, tenant_id), _name_matches(SubRole, like_pattern(query)))
        )
        if parent_role_id is not None:
            stmt = stmt.where(RoleSubRole.role_id == parent_role_id)
        result = await self.db.execute(stmt)
        return [_sub_role_record(*row) for row in result.all()]

    @translate_db_errors
    async def list_sub_roles(self, tenant_id: str, parent_role_id: Optional[int] = None) -> list[SubRoleRecord]:
        stmt = self._sub_role_select().where(_visible_to(SubRole, tenant_id))
        if parent_role_id is not None:
            stmt = stmt.where(RoleSubRole.role_id == parent_role_id)
        stmt = stmt.order_by(SubRole.is_custom, func.lower(SubRole.canonical_name), SubRole.id)
        result = await self.db.execute(stmt)
        return [_sub_role_record(*row) for row in result.all()]

    @translate_db_errors
    async def create_custom_sub_role(
        self,
        tenant_id: str,
        actor_id: str,
        name: str,
        synonyms: list[str],
        parent_role_id: int,
        known_name: Optional[str] = None
    ) -> SubRoleRecord:
        """Insert the sub-role and its parent link in one transaction."""
        sub_role = SubRole(
            canonical_name=name,
            known_name=known_name,
            synonyms=list(synonyms),
            tenant_id=tenant_id,
            is_custom=True,
            created_by=actor_id,
            modified_by=actor_id,
        )
        try:
            async with write_transaction(self.db):
                self.db.add(sub_role)
                await self.db.flush()
                self.db.add(RoleSubRole(sub_role_id=sub_role.id, role_id=parent_role_id))
                await self.db.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                existing = await self.find_sub_role_by_name(name, tenant_id)
                raise duplicate_error("Sub-role", name, existing) from e
            if is_foreign_key_violation(e):
                raise NotFoundError(f"Role {parent_role_id} not found") from e
            raise InternalError("Could not create sub-role") from e

        parent = await self.db.get(Role, parent_role_id)
        return _sub_role_record(sub_role, parent_role_id, parent.canonical_name if parent else None)

    @translate_db_errors
    async def delete_custom_sub_role(self, sub_role_id: int, tenant_id: str) -> None:
        """
        Hard-delete a tenant's custom sub-role after removing its parent link.

        Sub-roles still assigned to an employee are refused with ConflictError.
        """
        sub_role = await self.db.get(SubRole, sub_role_id)
        if sub_role is None:
            raise NotFoundError(f"Sub-role {sub_role_id} not found")
        if not sub_role.is_custom or sub_role.tenant_id != tenant_id:
            raise AuthorizationError("Only the owning tenant can delete a custom sub-role")

        in_use = await self.db.scalar(
            select(func.count()).select_from(EmployeeRole).where(EmployeeRole.sub_role_id == sub_role_id)
        )
        if in_use:
            raise ConflictError(f"Sub-role {sub_role_id} is assigned to {in_use} employee role(s)")

        try:
            async with write_transaction(self.db):
                await self.db.execute(
                    delete(RoleSubRole).where(RoleSubRole.sub_role_id == sub_role_id),
                    execution_options={"synchronize_session": False},
                )
                await self.db.execute(
                    delete(SubRole).where(SubRole.id == sub_role_id),
                    execution_options={"synchronize_session": False},
                )
        except IntegrityError as e:
            if is_foreign_key_violation(e):
                raise ConflictError(f"Sub-role {sub_role_id} is still referenced") from e
            raise InternalError("Could not delete sub-role") from e

    # Skills

    @translate_db_errors
    async def find_skill_by_id(self, skill_id: int, tenant_id: str) -> Optional[SkillRecord]:
        stmt = select(Skill).where(and_(Skill.id == skill_id, _visible_to(Skill, tenant_id)))
        skill = (await self.db.execute(stmt)).scalar_one_or_none()
        return SkillRecord.model_validate(skill) if skill else None

    @translate_db_errors
    async def find_skill_by_name(self, name: str, tenant_id: str) -> Optional[SkillRecord]:
        stmt = (
            select(Skill)
            .where(and_(func.lower(Skill.canonical_name) == name.lower(), _visible_to(Skill, tenant_id)))
            .order_by(Skill.is_custom, Skill.id)
            .limit(1)
        )
        skill = (await self.db.execute(stmt)).scalar_one_or_none()
        return SkillRecord.model_validate(skill) if skill else None

    @translate_db_errors
    async def search_skills(self, query: str, tenant_id: str) -> list[SkillRecord]:
        """Active visible skills whose name, known name or any synonym contains ``query``. Unranked."""
        stmt = select(Skill).where(and_(
            Skill.is_active.is_(True),
            _visible_to(Skill, tenant_id),
            _name_matches(Skill, like_pattern(query)),
        ))
        result = await self.db.execute(stmt)
        return [SkillRecord.model_validate(skill) for skill in result.scalars().all()]

    @translate_db_errors
    async def list_skills_page(self, tenant_id: str, offset: int, limit: int) -> tuple[list[SkillRecord], int]:
        """Active visible skills, global first, then by name."""
        condition = and_(Skill.is_active.is_(True), _visible_to(Skill, tenant_id))
        total = await self.db.scalar(select(func.count()).select_from(Skill).where(condition))
        stmt = (
            select(Skill)
            .where(condition)
            .order_by(Skill.is_custom, func.lower(Skill.canonical_name), Skill.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [SkillRecord.model_validate(skill) for skill in result.scalars().all()], total or 0

    @translate_db_errors
    async def create_custom_skill(
        self,
        tenant_id: str,
        actor_id: str,
        name: str,
        synonyms: list[str],
        known_name: Optional[str] = None
    ) -> SkillRecord:
        skill = Skill(
            canonical_name=name,
            known_name=known_name,
            synonyms=list(synonyms),
            tenant_id=tenant_id,
            is_custom=True,
            is_active=True,
            created_by=actor_id,
            modified_by=actor_id,
        )
        try:
            async with write_transaction(self.db):
                self.db.add(skill)
                await self.db.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                existing = await self.find_skill_by_name(name, tenant_id)
                raise duplicate_error("Skill", name, existing) from e
            raise InternalError("Could not create skill") from e
        return SkillRecord.model_validate(skill)

    @translate_db_errors
    async def soft_delete_custom_skill(self, skill_id: int, tenant_id: str, actor_id: Optional[str] = None) -> None:
        skill = await self.db.get(Skill, skill_id)
        if skill is None or not skill.is_active:
            raise NotFoundError(f"Skill {skill_id} not found")
        if not skill.is_custom or skill.tenant_id != tenant_id:
            raise AuthorizationError("Only the owning tenant can delete a custom skill")

        async with write_transaction(self.db):
            await self.db.execute(
                update(Skill)
                .where(and_(Skill.id == skill_id, Skill.tenant_id == tenant_id))
                .values(is_active=False, modified_by=actor_id),
                execution_options={"synchronize_session": False},
            )

    # Grading

    @translate_db_errors
    async def get_grading(self, sub_role_id: int, skill_id: int) -> Optional[GradingRecord]:
        stmt = select(GradingEdge).where(
            and_(GradingEdge.sub_role_id == sub_role_id, GradingEdge.skill_id == skill_id)
        )
        edge = (await self.db.execute(stmt)).scalar_one_or_none()
        return GradingRecord.model_validate(edge) if edge else None

    @translate_db_errors
    async def list_gradings(
        self,
        sub_role_ids: Iterable[int],
        skill_ids: Optional[Iterable[int]] = None
    ) -> list[GradingRecord]:
        sub_role_ids = list(sub_role_ids)
        if not sub_role_ids:
            return []
        stmt = select(GradingEdge).where(GradingEdge.sub_role_id.in_(sub_role_ids))
        if skill_ids is not None:
            skill_ids = list(skill_ids)
            if not skill_ids:
                return []
            stmt = stmt.where(GradingEdge.skill_id.in_(skill_ids))
        result = await self.db.execute(stmt)
        return [GradingRecord.model_validate(edge) for edge in result.scalars().all()]

    # Soft skills and role requirements

    @translate_db_errors
    async def list_soft_skills(self) -> list[SoftSkillRecord]:
        stmt = (
            select(SoftSkill)
            .where(SoftSkill.is_active.is_(True))
            .order_by(SoftSkill.order_index, SoftSkill.id)
        )
        result = await self.db.execute(stmt)
        return [SoftSkillRecord.model_validate(s) for s in result.scalars().all()]

    @translate_db_errors
    async def list_role_requirements(self, role_id: int) -> list[RequirementRecord]:
        stmt = (
            select(RoleSoftSkillRequirement, SoftSkill.code, SoftSkill.name)
            .join(SoftSkill, SoftSkill.id == RoleSoftSkillRequirement.soft_skill_id)
            .where(RoleSoftSkillRequirement.role_id == role_id)
            .order_by(RoleSoftSkillRequirement.priority, SoftSkill.order_index, SoftSkill.id)
        )
        result = await self.db.execute(stmt)
        return [
            RequirementRecord.model_validate(req).model_copy(
                update={"soft_skill_code": code, "soft_skill_name": name}
            )
            for req, code, name in result.all()
        ]

    @translate_db_errors
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
        values = dict(
            priority=priority,
            weight=weight,
            is_required=is_required,
            min_score=min_score,
            target_score=target_score,
        )
        stmt = (
            pg_insert(RoleSoftSkillRequirement)
            .values(role_id=role_id, soft_skill_id=soft_skill_id, **values)
            .on_conflict_do_update(constraint='uix_role_soft_skill', set_=values)
            .returning(RoleSoftSkillRequirement.id)
        )
        try:
            async with write_transaction(self.db):
                requirement_id = (await self.db.execute(stmt)).scalar_one()
        except IntegrityError as e:
            if is_foreign_key_violation(e):
                raise NotFoundError(f"Role {role_id} or soft skill {soft_skill_id} not found") from e
            raise InternalError("Could not save role requirement") from e

        return RequirementRecord(id=requirement_id, role_id=role_id, soft_skill_id=soft_skill_id, **values)

    # Employees

    @translate_db_errors
    async def get_employee(self, employee_id: int) -> Optional[EmployeeRecord]:
        employee = await self.db.get(Employee, employee_id)
        return EmployeeRecord.model_validate(employee) if employee else None

    @translate_db_errors
    async def list_employee_roles(self, employee_id: int, current_only: bool = True) -> list[EmployeeRoleRecord]:
        stmt = (
            select(EmployeeRole, Role.canonical_name, SubRole.canonical_name)
            .outerjoin(Role, Role.id == EmployeeRole.role_id)
            .outerjoin(SubRole, SubRole.id == EmployeeRole.sub_role_id)
            .where(EmployeeRole.employee_id == employee_id)
            .order_by(EmployeeRole.id)
        )
        if current_only:
            stmt = stmt.where(EmployeeRole.is_current.is_(True))
        result = await self.db.execute(stmt)
        return [
            EmployeeRoleRecord.model_validate(employee_role).model_copy(
                update={"role_name": role_name, "sub_role_name": sub_role_name}
            )
            for employee_role, role_name, sub_role_name in result.all()
        ]

    @translate_db_errors
    async def list_employee_skills(self, employee_id: int, min_proficiency: int = 1) -> list[EmployeeSkillRecord]:
        stmt = (
            select(EmployeeSkill.employee_id, EmployeeSkill.skill_id, Skill.canonical_name,
                   EmployeeSkill.proficiency_level)
            .join(Skill, Skill.id == EmployeeSkill.skill_id)
            .where(and_(
                EmployeeSkill.employee_id == employee_id,
                EmployeeSkill.proficiency_level >= min_proficiency,
            ))
        )
        result = await self.db.execute(stmt)
        return [
            EmployeeSkillRecord(
                employee_id=emp_id,
                skill_id=skill_id,
                skill_name=name,
                proficiency_level=level,
            )
            for emp_id, skill_id, name, level in result.all()
        ]

    # Soft-skill scores

    @translate_db_errors
    async def insert_soft_skill_scores(self, scores: list[SoftSkillScoreRecord]) -> list[SoftSkillScoreRecord]:
        """Append one batch of scores atomically."""
        rows = [SoftSkillScore(**score.model_dump(exclude={"id"})) for score in scores]
        try:
            async with write_transaction(self.db):
                self.db.add_all(rows)
                await self.db.flush()
        except IntegrityError as e:
            if is_foreign_key_violation(e):
                raise NotFoundError("Employee or soft skill not found") from e
            raise InternalError("Could not save soft skill scores") from e

        logger.info(f"Stored {len(rows)} soft skill scores")
        return [SoftSkillScoreRecord.model_validate(row) for row in rows]

    @translate_db_errors
    async def list_latest_soft_skill_scores(self, employee_id: int) -> list[SoftSkillScoreRecord]:
        """Newest score per soft skill; ties on ``calculated_at`` go to the higher id."""
        stmt = (
            select(SoftSkillScore)
            .where(SoftSkillScore.employee_id == employee_id)
            .distinct(SoftSkillScore.soft_skill_id)
            .order_by(
                SoftSkillScore.soft_skill_id,
                SoftSkillScore.calculated_at.desc(),
                SoftSkillScore.id.desc(),
            )
        )
        result = await self.db.execute(stmt)
        return [SoftSkillScoreRecord.model_validate(s) for s in result.scalars().all()]

    @translate_db_errors
    async def list_latest_scores_for_employees(self, employee_ids: Iterable[int]) -> list[SoftSkillScoreRecord]:
        employee_ids = list(employee_ids)
        if not employee_ids:
            return []
        stmt = (
            select(SoftSkillScore)
            .where(SoftSkillScore.employee_id.in_(employee_ids))
            .distinct(SoftSkillScore.employee_id, SoftSkillScore.soft_skill_id)
            .order_by(
                SoftSkillScore.employee_id,
                SoftSkillScore.soft_skill_id,
                SoftSkillScore.calculated_at.desc(),
                SoftSkillScore.id.desc(),
            )
        )
        result = await self.db.execute(stmt)
        return [SoftSkillScoreRecord.model_validate(s) for s in result.scalars().all()]

    @translate_db_errors
    async def list_score_history(self, employee_id: int, per_skill: int = 2) -> dict[int, list[SoftSkillScoreRecord]]:
        """Most recent ``per_skill`` scores for every soft skill of an employee, newest first."""
        stmt = (
            select(SoftSkillScore)
            .where(SoftSkillScore.employee_id == employee_id)
            .order_by(SoftSkillScore.calculated_at.desc(), SoftSkillScore.id.desc())
        )
        result = await self.db.execute(stmt)
        history: dict[int, list[SoftSkillScoreRecord]] = {}
        for score in result.scalars().all():
            bucket = history.setdefault(score.soft_skill_id, [])
            if len(bucket) < per_skill:
                bucket.append(SoftSkillScoreRecord.model_validate(score))
        return history

    @translate_db_errors
    async def score_histograms(self, soft_skill_ids: Iterable[int]) -> dict[int, dict[int, int]]:
        """``{soft_skill_id: {normalized_score: count}}`` over every stored score."""
        soft_skill_ids = list(soft_skill_ids)
        if not soft_skill_ids:
            return {}
        stmt = (
            select(SoftSkillScore.soft_skill_id, SoftSkillScore.normalized_score, func.count())
            .where(SoftSkillScore.soft_skill_id.in_(soft_skill_ids))
            .group_by(SoftSkillScore.soft_skill_id, SoftSkillScore.normalized_score)
        )
        result = await self.db.execute(stmt)
        histograms: dict[int, dict[int, int]] = {}
        for soft_skill_id, score, count in result.all():
            histograms.setdefault(soft_skill_id, {})[score] = count
        return histograms
