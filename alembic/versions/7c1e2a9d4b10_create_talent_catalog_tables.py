"""create talent catalog tables

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '7c1e2a9d4b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CUSTOM_SCOPE_CHECK = '(is_custom = FALSE AND tenant_id IS NULL) OR (is_custom = TRUE AND tenant_id IS NOT NULL)'


def _audit_columns():
    return [
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('modified_by', sa.String(length=255), nullable=True),
        sa.Column('created_on', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('modified_on', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.execute('CREATE SCHEMA IF NOT EXISTS talent')

    op.create_table('roles',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('canonical_name', sa.String(length=255), nullable=False),
    sa.Column('known_name', sa.String(length=255), nullable=True),
    sa.Column('synonyms', postgresql.ARRAY(sa.String()), server_default='{}', nullable=False),
    sa.PrimaryKeyConstraint('id'),
    schema='talent'
    )
    op.create_index('uix_roles_canonical_name', 'roles', [sa.text('lower(canonical_name)')],
                    unique=True, schema='talent')

    op.create_table('sub_roles',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('canonical_name', sa.String(length=255), nullable=False),
    sa.Column('known_name', sa.String(length=255), nullable=True),
    sa.Column('synonyms', postgresql.ARRAY(sa.String()), server_default='{}', nullable=False),
    sa.Column('tenant_id', sa.String(length=255), nullable=True),
    sa.Column('is_custom', sa.Boolean(), server_default='false', nullable=False),
    *_audit_columns(),
    sa.CheckConstraint(CUSTOM_SCOPE_CHECK, name='check_custom_sub_roles'),
    sa.PrimaryKeyConstraint('id'),
    schema='talent'
    )
    op.create_index('idx_sub_roles_tenant_id', 'sub_roles', ['tenant_id'], unique=False, schema='talent')
    op.create_index('uix_sub_roles_name_scope', 'sub_roles',
                    [sa.text('lower(canonical_name)'), sa.text("COALESCE(tenant_id, '*')")],
                    unique=True, schema='talent')

    op.create_table('role_sub_role',
    sa.Column('sub_role_id', sa.Integer(), nullable=False),
    sa.Column('role_id', sa.Integer(), nullable=False),
    sa.ForeignKeyConstraint(['role_id'], ['talent.roles.id'], ),
    sa.ForeignKeyConstraint(['sub_role_id'], ['talent.sub_roles.id'], ),
    sa.PrimaryKeyConstraint('sub_role_id'),
    schema='talent'
    )
    op.create_index('idx_role_sub_role_role_id', 'role_sub_role', ['role_id'], unique=False, schema='talent')

    op.create_table('skills',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('canonical_name', sa.String(length=255), nullable=False),
    sa.Column('known_name', sa.String(length=255), nullable=True),
    sa.Column('synonyms', postgresql.ARRAY(sa.String()), server_default='{}', nullable=False),
    sa.Column('tenant_id', sa.String(length=255), nullable=True),
    sa.Column('is_custom', sa.Boolean(), server_default='false', nullable=False),
    sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
    *_audit_columns(),
    sa.CheckConstraint(CUSTOM_SCOPE_CHECK, name='check_custom_skills'),
    sa.PrimaryKeyConstraint('id'),
    schema='talent'
    )
    op.create_index('idx_skills_tenant_active', 'skills', ['tenant_id', 'is_active'], unique=False, schema='talent')
    op.create_index('uix_skills_name_scope', 'skills',
                    [sa.text('lower(canonical_name)'), sa.text("COALESCE(tenant_id, '*')")],
                    unique=True, schema='talent')

    op.create_table('skills_sub_roles_value',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('sub_role_id', sa.Integer(), nullable=False),
    sa.Column('skill_id', sa.Integer(), nullable=False),
    sa.Column('grading', sa.Float(), nullable=True),
    sa.Column('value', sa.Float(), nullable=True),
    sa.CheckConstraint('grading IS NULL OR (grading >= 0 AND grading <= 1)', name='check_grading_range'),
    sa.CheckConstraint('value IS NULL OR value >= 0', name='check_grading_value'),
    sa.ForeignKeyConstraint(['skill_id'], ['talent.skills.id'], ),
    sa.ForeignKeyConstraint(['sub_role_id'], ['talent.sub_roles.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('sub_role_id', 'skill_id', name='uix_grading_sub_role_skill'),
    schema='talent'
    )
    op.create_index('idx_grading_skill_id', 'skills_sub_roles_value', ['skill_id'], unique=False, schema='talent')

    op.create_table('soft_skills',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('code', sa.String(length=100), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('name_en', sa.String(length=255), nullable=True),
    sa.Column('category', sa.String(length=100), nullable=True),
    sa.Column('order_index', sa.Integer(), server_default='0', nullable=False),
    sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('code'),
    schema='talent'
    )

    op.create_table('role_soft_skills',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('role_id', sa.Integer(), nullable=False),
    sa.Column('soft_skill_id', sa.Integer(), nullable=False),
    sa.Column('priority', sa.Integer(), nullable=False),
    sa.Column('weight', sa.Float(), nullable=False),
    sa.Column('is_required', sa.Boolean(), nullable=False),
    sa.Column('min_score', sa.Integer(), nullable=True),
    sa.Column('target_score', sa.Integer(), nullable=True),
    sa.CheckConstraint('priority >= 1', name='check_requirement_priority'),
    sa.CheckConstraint('weight > 0', name='check_requirement_weight'),
    sa.ForeignKeyConstraint(['role_id'], ['talent.roles.id'], ),
    sa.ForeignKeyConstraint(['soft_skill_id'], ['talent.soft_skills.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('role_id', 'soft_skill_id', name='uix_role_soft_skill'),
    schema='talent'
    )

    op.create_table('employees',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('tenant_id', sa.String(length=255), nullable=False),
    sa.Column('first_name', sa.String(length=255), nullable=True),
    sa.Column('last_name', sa.String(length=255), nullable=True),
    sa.Column('hire_date', sa.Date(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    schema='talent'
    )
    op.create_index('idx_employees_tenant_id', 'employees', ['tenant_id'], unique=False, schema='talent')

    op.create_table('employee_roles',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('employee_id', sa.Integer(), nullable=False),
    sa.Column('role_id', sa.Integer(), nullable=True),
    sa.Column('sub_role_id', sa.Integer(), nullable=True),
    sa.Column('is_current', sa.Boolean(), server_default='true', nullable=False),
    sa.Column('years_in_role', sa.Float(), nullable=True),
    sa.ForeignKeyConstraint(['employee_id'], ['talent.employees.id'], ),
    sa.ForeignKeyConstraint(['role_id'], ['talent.roles.id'], ),
    sa.ForeignKeyConstraint(['sub_role_id'], ['talent.sub_roles.id'], ),
    sa.PrimaryKeyConstraint('id'),
    schema='talent'
    )
    op.create_index('idx_employee_roles_employee_current', 'employee_roles', ['employee_id', 'is_current'],
                    unique=False, schema='talent')
    op.create_index('idx_employee_roles_sub_role_id', 'employee_roles', ['sub_role_id'], unique=False, schema='talent')

    op.create_table('employee_skills',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('employee_id', sa.Integer(), nullable=False),
    sa.Column('skill_id', sa.Integer(), nullable=False),
    sa.Column('proficiency_level', sa.Integer(), nullable=False),
    sa.CheckConstraint('proficiency_level >= 0 AND proficiency_level <= 5', name='check_proficiency_level'),
    sa.ForeignKeyConstraint(['employee_id'], ['talent.employees.id'], ),
    sa.ForeignKeyConstraint(['skill_id'], ['talent.skills.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('employee_id', 'skill_id', name='uix_employee_skill'),
    schema='talent'
    )

    op.create_table('soft_skill_scores',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('employee_id', sa.Integer(), nullable=False),
    sa.Column('soft_skill_id', sa.Integer(), nullable=False),
    sa.Column('assessment_id', sa.String(length=255), nullable=False),
    sa.Column('raw_score', sa.Float(), nullable=False),
    sa.Column('normalized_score', sa.Integer(), nullable=False),
    sa.Column('percentile', sa.Integer(), nullable=False),
    sa.Column('level', sa.String(length=50), nullable=False),
    sa.Column('confidence', sa.Float(), nullable=False),
    sa.Column('calculated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('score_details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.CheckConstraint('normalized_score >= 0 AND normalized_score <= 100', name='check_normalized_score'),
    sa.CheckConstraint('confidence >= 0 AND confidence <= 1', name='check_score_confidence'),
    sa.ForeignKeyConstraint(['employee_id'], ['talent.employees.id'], ),
    sa.ForeignKeyConstraint(['soft_skill_id'], ['talent.soft_skills.id'], ),
    sa.PrimaryKeyConstraint('id'),
    schema='talent'
    )
    op.create_index('idx_soft_skill_scores_latest', 'soft_skill_scores',
                    ['employee_id', 'soft_skill_id', 'calculated_at'], unique=False, schema='talent')
    op.create_index('idx_soft_skill_scores_soft_skill', 'soft_skill_scores', ['soft_skill_id'],
                    unique=False, schema='talent')


def downgrade() -> None:
    op.drop_index('idx_soft_skill_scores_soft_skill', table_name='soft_skill_scores', schema='talent')
    op.drop_index('idx_soft_skill_scores_latest', table_name='soft_skill_scores', schema='talent')
    op.drop_table('soft_skill_scores', schema='talent')
    op.drop_table('employee_skills', schema='talent')
    op.drop_index('idx_employee_roles_sub_role_id', table_name='employee_roles', schema='talent')
    op.drop_index('idx_employee_roles_employee_current', table_name='employee_roles', schema='talent')
    op.drop_table('employee_roles', schema='talent')
    op.drop_index('idx_employees_tenant_id', table_name='employees', schema='talent')
    op.drop_table('employees', schema='talent')
    op.drop_table('role_soft_skills', schema='talent')
    op.drop_table('soft_skills', schema='talent')
    op.drop_index('idx_grading_skill_id', table_name='skills_sub_roles_value', schema='talent')
    op.drop_table('skills_sub_roles_value', schema='talent')
    op.drop_index('uix_skills_name_scope', table_name='skills', schema='talent')
    op.drop_index('idx_skills_tenant_active', table_name='skills', schema='talent')
    op.drop_table('skills', schema='talent')
    op.drop_index('idx_role_sub_role_role_id', table_name='role_sub_role', schema='talent')
    op.drop_table('role_sub_role', schema='talent')
    op.drop_index('uix_sub_roles_name_scope', table_name='sub_roles', schema='talent')
    op.drop_index('idx_sub_roles_tenant_id', table_name='sub_roles', schema='talent')
    op.drop_table('sub_roles', schema='talent')
    op.drop_index('uix_roles_canonical_name', table_name='roles', schema='talent')
    op.drop_table('roles', schema='talent')
