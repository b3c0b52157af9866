from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MatchedOn(str, Enum):
    NAME = "name"
    KNOWN_NAME = "knownName"
    SYNONYM = "synonym"


class Relevance(str, Enum):
    CORE = "core"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"
    NON_CORE = "non-core"


class Seniority(str, Enum):
    JUNIOR = "Junior"
    MIDDLE = "Middle"
    SENIOR = "Senior"


# Store records

class RoleRecord(CamelModel):
    id: int
    canonical_name: str
    known_name: Optional[str] = None
    synonyms: list[str] = []


class SubRoleRecord(CamelModel):
    id: int
    canonical_name: str
    known_name: Optional[str] = None
    synonyms: list[str] = []
    tenant_id: Optional[str] = None
    is_custom: bool = False
    created_by: Optional[str] = None
    parent_role_id: Optional[int] = None
    parent_role_name: Optional[str] = None


class SkillRecord(CamelModel):
    id: int
    canonical_name: str
    known_name: Optional[str] = None
    synonyms: list[str] = []
    tenant_id: Optional[str] = None
    is_custom: bool = False
    is_active: bool = True
    created_by: Optional[str] = None


class GradingRecord(CamelModel):
    sub_role_id: int
    skill_id: int
    grading: Optional[float] = None
    value: Optional[float] = None


class SoftSkillRecord(CamelModel):
    id: int
    code: str
    name: str
    name_en: Optional[str] = None
    category: Optional[str] = None
    order_index: int = 0


class RequirementRecord(CamelModel):
    id: int
    role_id: int
    soft_skill_id: int
    priority: int
    weight: float
    is_required: bool = False
    min_score: Optional[int] = None
    target_score: Optional[int] = None
    soft_skill_code: Optional[str] = None
    soft_skill_name: Optional[str] = None


class EmployeeRecord(CamelModel):
    id: int
    tenant_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    hire_date: Optional[date] = None


class EmployeeRoleRecord(CamelModel):
    id: int
    employee_id: int
    role_id: Optional[int] = None
    sub_role_id: Optional[int] = None
    is_current: bool = True
    years_in_role: Optional[float] = None
    role_name: Optional[str] = None
    sub_role_name: Optional[str] = None


class EmployeeSkillRecord(CamelModel):
    employee_id: int
    skill_id: int
    skill_name: str
    proficiency_level: int


# Requests

class CustomSubRoleCreate(CamelModel):
    custom_name: str = Field(..., description="Name of the tenant's custom sub-role")


class CustomSkillCreate(CamelModel):
    name: str
    known_name: Optional[str] = None
    synonyms: list[str] = []


# Responses

class SubRoleMatch(CamelModel):
    id: int
    canonical_name: str
    known_name: Optional[str] = None
    synonyms: list[str] = []
    tenant_id: Optional[str] = None
    is_custom: bool = False
    parent_role_id: Optional[int] = None
    matched_on: MatchedOn
    matched_synonym: Optional[str] = None


class GradingStars(CamelModel):
    full_stars: int
    partial_star: int
    is_null: bool = False


class SkillMatch(CamelModel):
    id: int
    canonical_name: str
    known_name: Optional[str] = None
    synonyms: list[str] = []
    tenant_id: Optional[str] = None
    is_custom: bool = False
    matched_on: Optional[MatchedOn] = None
    matched_synonym: Optional[str] = None
    grading: Optional[float] = None
    value: Optional[float] = None
    grading_stars: Optional[GradingStars] = None
    max_grading_source: Optional[int] = None


class SkillSearchPage(CamelModel):
    items: list[SkillMatch]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


class AIClassification(CamelModel):
    parent_role_id: int
    parent_role_name: str
    confidence: float
    reasoning: str = ""
    alternatives: list[int] = []
    model: str
    low_confidence: bool = False


class CustomSubRoleResult(CamelModel):
    sub_role: SubRoleRecord
    ai_classification: AIClassification


class SkillGrading(CamelModel):
    sub_role_id: int
    skill_id: int
    grading: Optional[float] = None
    value: Optional[float] = None
    grading_stars: GradingStars


class EffectiveGrading(CamelModel):
    skill_id: int
    grading: Optional[float] = None
    max_grading_source: Optional[int] = None


class RadarSkill(CamelModel):
    id: int
    name: str
    proficiency_level: int
    grading: Optional[float] = None
    value: Optional[float] = None
    relevance: Relevance


class RoleSkillProjection(CamelModel):
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    sub_role_id: int
    sub_role_name: Optional[str] = None
    display_name: str
    seniority: Optional[Seniority] = None
    years_in_role: Optional[float] = None
    skills: list[RadarSkill] = []


class EmployeeSkillProjection(CamelModel):
    employee_id: int
    seniority: Optional[Seniority] = None
    roles: list[RoleSkillProjection] = []
