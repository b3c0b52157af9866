"""
API tests for the catalog and soft-skill routers.

The routers run against the in-memory store through dependency overrides;
every response is checked for the ``{status, data, errors}`` envelope.

Run with:
    pytest tests/test_api.py -v
"""

import json
from typing import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import AuthContext, get_auth_context, get_catalog_store, get_custom_entity_service
from ml_models.sub_role_classifier import SubRoleClassifier
from services.custom_entity_service import CustomEntityService
from settings.server import catalog_app
from tests.conftest import ACTOR, OTHER_TENANT, TENANT

pytestmark = pytest.mark.api


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def chat_replies() -> list:
    return [
        json.dumps({"parent_role_id": 4, "confidence": 0.91, "reasoning": "Mobile work"}),
        json.dumps({"synonyms": ["RN Dev", "React-Native Engineer", "Mobile React Developer"]}),
    ]


@pytest.fixture
def client(store, chat_replies) -> Generator[TestClient, None, None]:
    """Test client acting as an admin of tenant t1."""
    store.add_soft_skills()
    store.add_employee(1, tenant_id=TENANT)
    classifier = SubRoleClassifier(chat=AsyncMock(side_effect=chat_replies), classification_timeout=1)

    catalog_app.dependency_overrides[get_auth_context] = lambda: AuthContext(
        actor_id=ACTOR, tenant_id=TENANT, email="admin@t1.com", role="Admin"
    )
    catalog_app.dependency_overrides[get_catalog_store] = lambda: store
    catalog_app.dependency_overrides[get_custom_entity_service] = lambda: CustomEntityService(
        store, classifier=classifier
    )
    with TestClient(catalog_app) as test_client:
        yield test_client
    catalog_app.dependency_overrides.clear()


def _assert_failure(response, status_code: int, code: str) -> dict:
    assert response.status_code == status_code
    body = response.json()
    assert body["status"] == "failure"
    assert body["data"] is None
    assert body["errors"][0]["code"] == code
    return body["errors"][0]


# ============================================================================
# Catalog
# ============================================================================

class TestCatalogEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_search_sub_roles(self, client):
        response = client.get("/v1/catalog/sub-roles/search", params={"q": "fe dev"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["errors"] == []
        assert body["data"][0]["id"] == 12
        assert body["data"][0]["canonicalName"] == "Frontend Developer"
        assert body["data"][0]["matchedOn"] == "synonym"
        assert body["data"][0]["matchedSynonym"] == "FE Dev"

    def test_short_query_is_a_validation_error(self, client):
        response = client.get("/v1/catalog/sub-roles/search", params={"q": "a"})

        _assert_failure(response, 400, "validation_error")

    def test_missing_query_is_rejected_by_request_validation(self, client):
        response = client.get("/v1/catalog/sub-roles/search")

        _assert_failure(response, 400, "validation_error")

    def test_list_roles(self, client):
        response = client.get("/v1/catalog/roles", params={"search": "developer"})

        assert [r["id"] for r in response.json()["data"]] == [4, 1]

    def test_unknown_role(self, client):
        _assert_failure(client.get("/v1/catalog/roles/404"), 404, "not_found")

    def test_invisible_sub_role(self, client, store):
        store.add_sub_role(880, "Hidden Role", parent_role_id=1, tenant_id=OTHER_TENANT)

        _assert_failure(client.get("/v1/catalog/sub-roles/880"), 404, "not_found")

    def test_create_custom_sub_role(self, client, store):
        response = client.post("/v1/catalog/sub-roles/custom", json={"customName": "React Native Developer"})

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["subRole"]["tenantId"] == TENANT
        assert data["subRole"]["isCustom"] is True
        assert data["subRole"]["synonyms"] == ["RN Dev", "React-Native Engineer", "Mobile React Developer"]
        assert data["aiClassification"]["parentRoleId"] == 4
        assert data["aiClassification"]["lowConfidence"] is False

    def test_duplicate_custom_sub_role(self, client):
        response = client.post("/v1/catalog/sub-roles/custom", json={"customName": "Frontend Developer"})

        error = _assert_failure(response, 409, "duplicate")
        assert error["scope"] == "global"

    @pytest.mark.parametrize("chat_replies", [[RuntimeError("LLM down")]])
    def test_classification_failure(self, client, store):
        before = len(store.sub_roles)

        response = client.post("/v1/catalog/sub-roles/custom", json={"customName": "React Native Developer"})

        error = _assert_failure(response, 502, "classification_error")
        assert error["guidance"]
        assert len(store.sub_roles) == before

    def test_delete_other_tenants_sub_role(self, client, store):
        store.add_sub_role(881, "Growth Hacker", parent_role_id=3, tenant_id=OTHER_TENANT)

        _assert_failure(client.delete("/v1/catalog/sub-roles/custom/881"), 403, "authorization_error")

    def test_delete_own_sub_role(self, client, store):
        store.add_sub_role(882, "Growth Hacker", parent_role_id=3, tenant_id=TENANT)

        response = client.delete("/v1/catalog/sub-roles/custom/882")

        assert response.status_code == 200
        assert response.json()["data"] == {"ok": True}
        assert 882 not in store.sub_roles

    def test_search_skills_with_grading(self, client, store):
        store.add_grading(12, 102, 0.9)

        response = client.get("/v1/catalog/skills/search", params={"q": "react", "subRoleId": 12})

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["grading"] == 0.9
        assert data["items"][0]["gradingStars"] == {"fullStars": 4, "partialStar": 50, "isNull": False}

    def test_create_and_delete_custom_skill(self, client, store):
        response = client.post("/v1/catalog/skills/custom", json={"name": "Prompt Engineering"})
        assert response.status_code == 201
        skill_id = response.json()["data"]["id"]

        assert client.delete(f"/v1/catalog/skills/custom/{skill_id}").status_code == 200
        assert store.skills[skill_id].is_active is False

    def test_employee_role_skills_for_unknown_employee(self, client):
        _assert_failure(client.get("/v1/catalog/employees/404/role-skills"), 404, "not_found")


# ============================================================================
# Soft skills
# ============================================================================

class TestSoftSkillEndpoints:
    def test_score_assessment(self, client, store):
        response = client.post("/v1/soft-skills/assessments/score", json={
            "employeeId": 1,
            "assessmentId": "a-1",
            "responses": {
                "bigFive": {"extraversion": 70, "agreeableness": 60},
                "disc": {"D": 80, "I": 70, "S": 50, "C": 40},
            },
        })

        assert response.status_code == 201
        scores = {s["code"]: s for s in response.json()["data"]["scores"]}
        assert scores["communication_effective"]["normalizedScore"] == 67
        assert scores["communication_effective"]["level"] == "advanced"
        assert len(store.scores) == len(store.soft_skills)

    def test_score_assessment_out_of_range(self, client):
        response = client.post("/v1/soft-skills/assessments/score", json={
            "employeeId": 1,
            "assessmentId": "a-1",
            "responses": {"disc": {"D": 180}},
        })

        _assert_failure(response, 400, "validation_error")

    def test_aggregate_360(self, client):
        response = client.post("/v1/soft-skills/360/aggregate", json={"sources": [
            {"source": "self", "normalizedScore": 60},
            {"source": "peer", "normalizedScore": 80},
            {"source": "manager", "normalizedScore": 90},
        ]})

        assert response.status_code == 200
        assert response.json()["data"]["score"] == 79

    def test_role_requirements_and_fit(self, client, store):
        a = store.soft_skill_id("teamwork")
        response = client.put("/v1/soft-skills/roles/1/requirements", json={"softSkillId": a, "priority": 1})
        assert response.status_code == 200
        assert response.json()["data"]["targetScore"] == 80

        store.add_score(1, a, 72)
        response = client.get("/v1/soft-skills/employees/1/role-fit/1")

        data = response.json()["data"]
        assert data["overallFitScore"] == 90.0
        assert data["requirements"][0]["status"] == "close"
        assert data["developmentAreas"][0]["softSkillId"] == a

    def test_non_admin_cannot_change_role_requirements(self, client, store):
        catalog_app.dependency_overrides[get_auth_context] = lambda: AuthContext(
            actor_id="u-2", tenant_id=OTHER_TENANT, email="member@t2.com", role="Member"
        )
        a = store.soft_skill_id("teamwork")

        response = client.put("/v1/soft-skills/roles/1/requirements", json={"softSkillId": a, "priority": 1})

        _assert_failure(response, 403, "authorization_error")
        assert store.requirements == {}

    def test_team_analysis_requires_employees(self, client):
        response = client.post("/v1/soft-skills/teams/analysis", json={"employeeIds": []})

        _assert_failure(response, 400, "validation_error")


class TestAuthentication:
    def test_invalid_token_is_rejected(self, client):
        catalog_app.dependency_overrides.pop(get_auth_context)

        response = client.get("/v1/catalog/roles", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json()["status"] == "failure"
