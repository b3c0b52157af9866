"""
Catalog Models

Roles, sub-roles and skills form a hybrid catalog: rows with a NULL
``tenant_id`` are global, rows carrying a tenant id are that tenant's
private custom entries. Uniqueness of names is enforced per scope with a
functional index on ``(lower(canonical_name), COALESCE(tenant_id, '*'))``.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, Float, ForeignKey, Index,
    UniqueConstraint, CheckConstraint, ARRAY, func
)
from sqlalchemy.orm import relationship
from models.base_models import BaseModel
from settings.database import Base, SCHEMA

GLOBAL_TENANT_SENTINEL = '*'


class Role(Base):
    __tablename__ = 'roles'
    __table_args__ = {'schema': SCHEMA}

    id = Column(Integer, primary_key=True)
    canonical_name = Column(String(255), nullable=False)
    known_name = Column(String(255), nullable=True)
    synonyms = Column(ARRAY(String), nullable=False, server_default='{}')

    sub_role_links = relationship('RoleSubRole', back_populates='role')


class SubRole(BaseModel):
    __tablename__ = 'sub_roles'
    __table_args__ = (
        Index('idx_sub_roles_tenant_id', 'tenant_id'),
        CheckConstraint(
            '(is_custom = FALSE AND tenant_id IS NULL) OR (is_custom = TRUE AND tenant_id IS NOT NULL)',
            name='check_custom_sub_roles'
        ),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    canonical_name = Column(String(255), nullable=False)
    known_name = Column(String(255), nullable=True)
    synonyms = Column(ARRAY(String), nullable=False, server_default='{}')
    tenant_id = Column(String(255), nullable=True)
    is_custom = Column(Boolean, nullable=False, default=False, server_default='false')

    parent_link = relationship('RoleSubRole', back_populates='sub_role', uselist=False)


class RoleSubRole(Base):
    """Role <-> SubRole link. Keyed on the sub-role: every sub-role has exactly one parent."""
    __tablename__ = 'role_sub_role'
    __table_args__ = (
        Index('idx_role_sub_role_role_id', 'role_id'),
        {'schema': SCHEMA}
    )

    sub_role_id = Column(Integer, ForeignKey(f'{SCHEMA}.sub_roles.id'), primary_key=True)
    role_id = Column(Integer, ForeignKey(f'{SCHEMA}.roles.id'), nullable=False)

    role = relationship('Role', back_populates='sub_role_links')
    sub_role = relationship('SubRole', back_populates='parent_link')


class Skill(BaseModel):
    __tablename__ = 'skills'
    __table_args__ = (
        Index('idx_skills_tenant_active', 'tenant_id', 'is_active'),
        CheckConstraint(
            '(is_custom = FALSE AND tenant_id IS NULL) OR (is_custom = TRUE AND tenant_id IS NOT NULL)',
            name='check_custom_skills'
        ),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    canonical_name = Column(String(255), nullable=False)
    known_name = Column(String(255), nullable=True)
    synonyms = Column(ARRAY(String), nullable=False, server_default='{}')
    tenant_id = Column(String(255), nullable=True)
    is_custom = Column(Boolean, nullable=False, default=False, server_default='false')
    is_active = Column(Boolean, nullable=False, default=True, server_default='true')


class GradingEdge(Base):
    """How characteristic a skill is of a sub-role. NULL grading is distinct from 0."""
    __tablename__ = 'skills_sub_roles_value'
    __table_args__ = (
        UniqueConstraint('sub_role_id', 'skill_id', name='uix_grading_sub_role_skill'),
        Index('idx_grading_skill_id', 'skill_id'),
        CheckConstraint('grading IS NULL OR (grading >= 0 AND grading <= 1)', name='check_grading_range'),
        CheckConstraint('value IS NULL OR value >= 0', name='check_grading_value'),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    sub_role_id = Column(Integer, ForeignKey(f'{SCHEMA}.sub_roles.id'), nullable=False)
    skill_id = Column(Integer, ForeignKey(f'{SCHEMA}.skills.id'), nullable=False)
    grading = Column(Float, nullable=True)
    value = Column(Float, nullable=True)


class SoftSkill(Base):
    __tablename__ = 'soft_skills'
    __table_args__ = {'schema': SCHEMA}

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    order_index = Column(Integer, nullable=False, default=0, server_default='0')
    is_active = Column(Boolean, nullable=False, default=True, server_default='true')


class RoleSoftSkillRequirement(Base):
    __tablename__ = 'role_soft_skills'
    __table_args__ = (
        UniqueConstraint('role_id', 'soft_skill_id', name='uix_role_soft_skill'),
        CheckConstraint('priority >= 1', name='check_requirement_priority'),
        CheckConstraint('weight > 0', name='check_requirement_weight'),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey(f'{SCHEMA}.roles.id'), nullable=False)
    soft_skill_id = Column(Integer, ForeignKey(f'{SCHEMA}.soft_skills.id'), nullable=False)
    priority = Column(Integer, nullable=False, default=1)
    weight = Column(Float, nullable=False, default=1.0)
    is_required = Column(Boolean, nullable=False, default=False)
    min_score = Column(Integer, nullable=True)
    target_score = Column(Integer, nullable=True)

    soft_skill = relationship('SoftSkill')


# Case-insensitive name uniqueness per scope; global rows share the '*' scope.
Index('uix_roles_canonical_name', func.lower(Role.canonical_name), unique=True)
Index(
    'uix_sub_roles_name_scope',
    func.lower(SubRole.canonical_name),
    func.coalesce(SubRole.tenant_id, GLOBAL_TENANT_SENTINEL),
    unique=True,
)
Index(
    'uix_skills_name_scope',
    func.lower(Skill.canonical_name),
    func.coalesce(Skill.tenant_id, GLOBAL_TENANT_SENTINEL),
    unique=True,
)
