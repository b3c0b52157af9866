from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import (
    AuthContext, get_auth_context, get_catalog_store, get_custom_entity_service,
    get_grading_service, get_search_service
)
from api.responses import success_response
from common.exceptions import NotFoundError
from schemas.catalog_schemas import CustomSkillCreate, CustomSubRoleCreate
from services.catalog_store import CatalogStore
from services.custom_entity_service import CustomEntityService
from services.grading_projection_service import GradingProjectionService
from services.synonym_search import SynonymSearchService

catalog_router = APIRouter(prefix="/v1/catalog", tags=["Catalog"])


@catalog_router.get("/roles", status_code=status.HTTP_200_OK)
async def list_roles(
    search: Optional[str] = None,
    auth: AuthContext = Depends(get_auth_context),
    store: CatalogStore = Depends(get_catalog_store),
):
    return success_response(await store.list_roles(search))


@catalog_router.get("/roles/{role_id}", status_code=status.HTTP_200_OK)
async def get_role(
    role_id: int,
    auth: AuthContext = Depends(get_auth_context),
    store: CatalogStore = Depends(get_catalog_store),
):
    role = await store.find_role_by_id(role_id)
    if role is None:
        raise NotFoundError(f"Role {role_id} not found")
    return success_response(role)


@catalog_router.get("/sub-roles/search", status_code=status.HTTP_200_OK)
async def search_sub_roles(
    q: str = Query(..., description="Search text, 2 to 100 characters"),
    limit: Optional[int] = Query(None),
    parent_role_id: Optional[int] = Query(None, alias="parentRoleId"),
    auth: AuthContext = Depends(get_auth_context),
    search: SynonymSearchService = Depends(get_search_service),
):
    """
    Search sub-roles visible to the caller's tenant by name, known name or synonym.

    Each match reports what it matched on and, for synonym matches, which synonym.
    """
    matches = await search.search_sub_roles(q, auth.tenant_id, limit=limit, parent_role_id=parent_role_id)
    return success_response(matches)


@catalog_router.get("/sub-roles", status_code=status.HTTP_200_OK)
async def list_sub_roles(
    parent_role_id: Optional[int] = Query(None, alias="parentRoleId"),
    auth: AuthContext = Depends(get_auth_context),
    store: CatalogStore = Depends(get_catalog_store),
):
    return success_response(await store.list_sub_roles(auth.tenant_id, parent_role_id=parent_role_id))


@catalog_router.get("/sub-roles/{sub_role_id}", status_code=status.HTTP_200_OK)
async def get_sub_role(
    sub_role_id: int,
    auth: AuthContext = Depends(get_auth_context),
    store: CatalogStore = Depends(get_catalog_store),
):
    sub_role = await store.find_sub_role_by_id(sub_role_id, auth.tenant_id)
    if sub_role is None:
        raise NotFoundError(f"Sub-role {sub_role_id} not found")
    return success_response(sub_role)


@catalog_router.post("/sub-roles/custom", status_code=status.HTTP_201_CREATED)
async def create_custom_sub_role(
    data: CustomSubRoleCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: CustomEntityService = Depends(get_custom_entity_service),
):
    """
    Create a tenant custom sub-role. The parent role is chosen by the AI classifier.

    When the classification confidence is low the response still succeeds and
    carries alternative parent roles so the user can re-map later.
    """
    result = await service.create_custom_sub_role(auth.tenant_id, auth.actor_id, data.custom_name)
    return success_response(result, status_code=status.HTTP_201_CREATED)


@catalog_router.delete("/sub-roles/custom/{sub_role_id}", status_code=status.HTTP_200_OK)
async def delete_custom_sub_role(
    sub_role_id: int,
    auth: AuthContext = Depends(get_auth_context),
    service: CustomEntityService = Depends(get_custom_entity_service),
):
    await service.delete_custom_sub_role(sub_role_id, auth.tenant_id)
    return success_response({"ok": True})


@catalog_router.get("/skills/search", status_code=status.HTTP_200_OK)
async def search_skills(
    q: Optional[str] = Query(None),
    sub_role_id: Optional[int] = Query(None, alias="subRoleId"),
    employee_sub_role_ids: Optional[List[int]] = Query(None, alias="employeeSubRoleIds"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    auth: AuthContext = Depends(get_auth_context),
    search: SynonymSearchService = Depends(get_search_service),
):
    result = await search.search_skills(
        auth.tenant_id,
        query=q,
        sub_role_id=sub_role_id,
        employee_sub_role_ids=employee_sub_role_ids,
        page=page,
        limit=limit,
    )
    return success_response(result)


@catalog_router.post("/skills/custom", status_code=status.HTTP_201_CREATED)
async def create_custom_skill(
    data: CustomSkillCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: CustomEntityService = Depends(get_custom_entity_service),
):
    skill = await service.create_custom_skill(
        auth.tenant_id, auth.actor_id, data.name, synonyms=data.synonyms, known_name=data.known_name
    )
    return success_response(skill, status_code=status.HTTP_201_CREATED)


@catalog_router.delete("/skills/custom/{skill_id}", status_code=status.HTTP_200_OK)
async def delete_custom_skill(
    skill_id: int,
    auth: AuthContext = Depends(get_auth_context),
    service: CustomEntityService = Depends(get_custom_entity_service),
):
    await service.delete_custom_skill(skill_id, auth.tenant_id, auth.actor_id)
    return success_response({"ok": True})


@catalog_router.get("/gradings/{sub_role_id}/{skill_id}", status_code=status.HTTP_200_OK)
async def get_skill_grading(
    sub_role_id: int,
    skill_id: int,
    auth: AuthContext = Depends(get_auth_context),
    grading: GradingProjectionService = Depends(get_grading_service),
):
    return success_response(await grading.get_skill_grading(sub_role_id, skill_id, auth.tenant_id))


@catalog_router.get("/employees/{employee_id}/role-skills", status_code=status.HTTP_200_OK)
async def get_employee_role_skill_projection(
    employee_id: int,
    limit: Optional[int] = Query(None),
    core_threshold: Optional[float] = Query(None, alias="coreThreshold"),
    auth: AuthContext = Depends(get_auth_context),
    grading: GradingProjectionService = Depends(get_grading_service),
):
    """Radar-ready skills per current role of the employee, bucketed by relevance."""
    projection = await grading.get_employee_role_skill_projection(
        employee_id, tenant_id=auth.tenant_id, limit=limit, core_threshold=core_threshold
    )
    return success_response(projection)
