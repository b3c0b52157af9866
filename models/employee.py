from sqlalchemy import (
    Column, Integer, String, Boolean, Float, Date, DateTime, ForeignKey,
    Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from settings.database import Base, SCHEMA


class Employee(Base):
    """Read-only employee profile; owned by the HR management surface."""
    __tablename__ = 'employees'
    __table_args__ = (
        Index('idx_employees_tenant_id', 'tenant_id'),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    hire_date = Column(Date, nullable=True)


class EmployeeRole(Base):
    __tablename__ = 'employee_roles'
    __table_args__ = (
        Index('idx_employee_roles_employee_current', 'employee_id', 'is_current'),
        Index('idx_employee_roles_sub_role_id', 'sub_role_id'),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey(f'{SCHEMA}.employees.id'), nullable=False)
    role_id = Column(Integer, ForeignKey(f'{SCHEMA}.roles.id'), nullable=True)
    sub_role_id = Column(Integer, ForeignKey(f'{SCHEMA}.sub_roles.id'), nullable=True)
    is_current = Column(Boolean, nullable=False, default=True, server_default='true')
    years_in_role = Column(Float, nullable=True)


class EmployeeSkill(Base):
    __tablename__ = 'employee_skills'
    __table_args__ = (
        UniqueConstraint('employee_id', 'skill_id', name='uix_employee_skill'),
        CheckConstraint('proficiency_level >= 0 AND proficiency_level <= 5', name='check_proficiency_level'),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey(f'{SCHEMA}.employees.id'), nullable=False)
    skill_id = Column(Integer, ForeignKey(f'{SCHEMA}.skills.id'), nullable=False)
    proficiency_level = Column(Integer, nullable=False, default=0)


class SoftSkillScore(Base):
    """Append-only; the newest row per (employee, soft skill) is the effective score."""
    __tablename__ = 'soft_skill_scores'
    __table_args__ = (
        Index('idx_soft_skill_scores_latest', 'employee_id', 'soft_skill_id', 'calculated_at'),
        Index('idx_soft_skill_scores_soft_skill', 'soft_skill_id'),
        CheckConstraint('normalized_score >= 0 AND normalized_score <= 100', name='check_normalized_score'),
        CheckConstraint('confidence >= 0 AND confidence <= 1', name='check_score_confidence'),
        {'schema': SCHEMA}
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey(f'{SCHEMA}.employees.id'), nullable=False)
    soft_skill_id = Column(Integer, ForeignKey(f'{SCHEMA}.soft_skills.id'), nullable=False)
    assessment_id = Column(String(255), nullable=False)
    raw_score = Column(Float, nullable=False)
    normalized_score = Column(Integer, nullable=False)
    percentile = Column(Integer, nullable=False)
    level = Column(String(50), nullable=False)
    confidence = Column(Float, nullable=False)
    calculated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    score_details = Column(JSONB, nullable=True)
