from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from constants.soft_skills import SOURCE_WEIGHTS
from schemas.catalog_schemas import CamelModel


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class FitStatus(str, Enum):
    ACHIEVED = "achieved"
    CLOSE = "close"
    NEEDS_WORK = "needsWork"


class AssessmentResponses(CamelModel):
    """Psychometric answers; any sub-map may be absent."""

    big_five: Optional[dict[str, float]] = None
    disc: Optional[dict[str, float]] = None
    belbin: Optional[dict[str, float]] = None


class ScoreAssessmentRequest(CamelModel):
    employee_id: int
    assessment_id: str
    responses: AssessmentResponses


class SoftSkillScoreRecord(CamelModel):
    id: Optional[int] = None
    employee_id: int
    soft_skill_id: int
    assessment_id: str
    raw_score: float
    normalized_score: int
    percentile: int
    level: str
    confidence: float
    calculated_at: datetime
    score_details: Optional[dict] = None


class SoftSkillScoreResult(CamelModel):
    soft_skill_id: int
    code: str
    name: str
    raw_score: float
    normalized_score: int
    percentile: int
    level: str
    confidence: float
    trend: Trend
    previous_score: Optional[int] = None
    calculated_at: datetime


class ScoreAssessmentResult(CamelModel):
    employee_id: int
    assessment_id: str
    scores: list[SoftSkillScoreResult]


class SoftSkillProfileEntry(CamelModel):
    soft_skill_id: int
    code: str
    name: str
    category: Optional[str] = None
    normalized_score: int
    level: str
    percentile: int
    confidence: float
    calculated_at: datetime


class TeamSkillStat(CamelModel):
    soft_skill_id: int
    code: str
    name: str
    average: float
    minimum: int
    maximum: int
    spread: float
    sample_size: int


class TeamAnalysis(CamelModel):
    employee_count: int
    assessed_count: int
    skills: list[TeamSkillStat] = []
    strengths: list[TeamSkillStat] = []
    weaknesses: list[TeamSkillStat] = []
    gaps: list[TeamSkillStat] = []


class TeamAnalysisRequest(CamelModel):
    employee_ids: list[int] = Field(..., min_length=1)


class SourceScore(CamelModel):
    source: str
    normalized_score: float = Field(..., ge=0, le=100)

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        if v not in SOURCE_WEIGHTS:
            raise ValueError(f"source must be one of {sorted(SOURCE_WEIGHTS)}")
        return v


class Aggregate360Request(CamelModel):
    sources: list[SourceScore] = Field(..., min_length=1)


class Aggregate360Result(CamelModel):
    score: int
    confidence: float
    total_weight: float
    sources_used: list[str]


class RequirementView(CamelModel):
    soft_skill_id: int
    code: Optional[str] = None
    name: Optional[str] = None
    priority: int
    weight: float
    is_required: bool
    min_score: int
    target_score: int


class RoleRequirements(CamelModel):
    role_id: int
    critical: list[RequirementView] = []
    important: list[RequirementView] = []
    supportive: list[RequirementView] = []


class RequirementUpsert(CamelModel):
    soft_skill_id: int
    priority: int = Field(1, ge=1)
    weight: float = Field(1.0, gt=0)
    is_required: bool = False
    min_score: Optional[int] = Field(None, ge=0, le=100)
    target_score: Optional[int] = Field(None, ge=0, le=100)


class RequirementFit(CamelModel):
    soft_skill_id: int
    code: Optional[str] = None
    name: Optional[str] = None
    priority: int
    weight: float
    is_required: bool
    current_score: int
    target_score: int
    min_score: Optional[int] = None
    gap: int
    status: FitStatus
    meets_minimum: bool


class RoleFitResult(CamelModel):
    employee_id: int
    role_id: int
    overall_fit_score: float
    requirements: list[RequirementFit] = []
    critical: list[RequirementFit] = []
    important: list[RequirementFit] = []
    supportive: list[RequirementFit] = []
    strengths: list[RequirementFit] = []
    development_areas: list[RequirementFit] = []
    readiness: bool
