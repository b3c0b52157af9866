"""
Pytest configuration and shared fixtures for the talent catalog tests.

This file provides:
- An in-memory catalog store seeded with a small global catalog
- A scripted LLM chat function for the sub-role classifier
- A throwaway PostgreSQL for the catalog store tests
"""

import json
import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from ml_models.sub_role_classifier import SubRoleClassifier
from tests.fakes import FakeCatalogStore

TENANT = "t1"
OTHER_TENANT = "t2"
ACTOR = "u-1"


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def store() -> FakeCatalogStore:
    """Global roles, sub-roles and skills shared by every tenant."""
    store = FakeCatalogStore()
    store.add_role(1, "Software Engineer", synonyms=["Developer"])
    store.add_role(2, "Data Scientist")
    store.add_role(3, "Product Manager")
    store.add_role(4, "Mobile Developer")

    store.add_sub_role(12, "Frontend Developer", parent_role_id=1,
                       synonyms=["Front-end Developer", "FE Dev"])
    store.add_sub_role(13, "Backend Developer", parent_role_id=1, known_name="Server-side Developer")
    store.add_sub_role(21, "ML Engineer", parent_role_id=2, synonyms=["Machine Learning Engineer"])

    store.add_skill(101, "Python", synonyms=["Python 3"])
    store.add_skill(102, "React", known_name="React.js", synonyms=["ReactJS"])
    store.add_skill(103, "SQL")
    store.add_skill(104, "Machine Learning", synonyms=["ML"])
    return store


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Classifier Fixtures
# ============================================================================

def llm_reply(payload: dict) -> str:
    return json.dumps(payload)


@pytest.fixture
def chat() -> AsyncMock:
    """Scripted chat call: the first reply classifies, the second lists synonyms."""
    return AsyncMock(side_effect=[
        llm_reply({"parent_role_id": 4, "confidence": 0.91, "reasoning": "Mobile work", "alternatives": [1]}),
        llm_reply({"synonyms": ["RN Dev", "React-Native Engineer", "Mobile React Developer"]}),
    ])


@pytest.fixture
def classifier(chat) -> SubRoleClassifier:
    return SubRoleClassifier(chat=chat, classification_timeout=1, synonym_timeout=1)


# ============================================================================
# PostgreSQL Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def postgres_url():
    """
    Async URL of a throwaway PostgreSQL.

    ``CATALOG_TEST_DATABASE_URL`` points at an existing server (its ``talent``
    schema is dropped and recreated per test); otherwise a container is started.
    """
    url = os.environ.get("CATALOG_TEST_DATABASE_URL")
    if url:
        yield url
        return

    postgres = pytest.importorskip("testcontainers.postgres")
    container = postgres.PostgresContainer("postgres:16-alpine", driver="asyncpg")
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    try:
        yield container.get_connection_url()
    finally:
        container.stop()
