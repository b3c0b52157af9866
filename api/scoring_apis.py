from fastapi import APIRouter, Depends, status

from api.dependencies import AuthContext, get_auth_context, get_role_fit_service, get_scoring_service
from api.responses import success_response
from common.exceptions import AuthorizationError
from schemas.scoring_schemas import (
    Aggregate360Request, RequirementUpsert, ScoreAssessmentRequest, TeamAnalysisRequest
)
from services.role_fit_service import RoleFitService
from services.soft_skill_scoring_service import SoftSkillScoringService, aggregate_360

scoring_router = APIRouter(prefix="/v1/soft-skills", tags=["Soft Skills"])


@scoring_router.get("/roles/{role_id}/requirements", status_code=status.HTTP_200_OK)
async def get_role_skill_requirements(
    role_id: int,
    auth: AuthContext = Depends(get_auth_context),
    role_fit: RoleFitService = Depends(get_role_fit_service),
):
    return success_response(await role_fit.get_role_skill_requirements(role_id))


@scoring_router.put("/roles/{role_id}/requirements", status_code=status.HTTP_200_OK)
async def upsert_role_requirement(
    role_id: int,
    data: RequirementUpsert,
    auth: AuthContext = Depends(get_auth_context),
    role_fit: RoleFitService = Depends(get_role_fit_service),
):
    """Create or replace a role requirement. Admin only; requirements apply to every tenant."""
    if not auth.is_admin:
        raise AuthorizationError("Only admins can change role requirements")
    return success_response(await role_fit.upsert_role_requirement(role_id, data))


@scoring_router.post("/assessments/score", status_code=status.HTTP_201_CREATED)
async def score_assessment(
    data: ScoreAssessmentRequest,
    auth: AuthContext = Depends(get_auth_context),
    scoring: SoftSkillScoringService = Depends(get_scoring_service),
):
    """Score one completed assessment and append a score per soft skill."""
    result = await scoring.score_assessment(
        data.employee_id, data.assessment_id, data.responses, tenant_id=auth.tenant_id
    )
    return success_response(result, status_code=status.HTTP_201_CREATED)


@scoring_router.get("/employees/{employee_id}/profile", status_code=status.HTTP_200_OK)
async def get_employee_soft_skill_profile(
    employee_id: int,
    auth: AuthContext = Depends(get_auth_context),
    scoring: SoftSkillScoringService = Depends(get_scoring_service),
):
    return success_response(await scoring.get_employee_soft_skill_profile(employee_id, tenant_id=auth.tenant_id))


@scoring_router.post("/teams/analysis", status_code=status.HTTP_200_OK)
async def get_team_soft_skill_analysis(
    data: TeamAnalysisRequest,
    auth: AuthContext = Depends(get_auth_context),
    scoring: SoftSkillScoringService = Depends(get_scoring_service),
):
    return success_response(await scoring.get_team_soft_skill_analysis(data.employee_ids, tenant_id=auth.tenant_id))


@scoring_router.post("/360/aggregate", status_code=status.HTTP_200_OK)
async def aggregate_360_feedback(
    data: Aggregate360Request,
    auth: AuthContext = Depends(get_auth_context),
):
    return success_response(aggregate_360(data.sources))


@scoring_router.get("/employees/{employee_id}/role-fit/{role_id}", status_code=status.HTTP_200_OK)
async def get_role_fit(
    employee_id: int,
    role_id: int,
    auth: AuthContext = Depends(get_auth_context),
    role_fit: RoleFitService = Depends(get_role_fit_service),
):
    """Gap analysis of the employee's latest soft-skill scores against the role's requirements."""
    return success_response(await role_fit.get_role_fit(employee_id, role_id, tenant_id=auth.tenant_id))
