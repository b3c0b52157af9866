"""
Custom Entity Manager

Tenant-scoped custom sub-roles and skills. A custom sub-role is only
persisted once the classifier has picked its parent role; the AI calls run
before the write transaction is opened, so a failed or slow classification
never leaves a half-created row behind.
"""

import logging
from typing import Optional

from common.exceptions import NotFoundError, ValidationError
from ml_models.sub_role_classifier import SubRoleClassifier
from schemas.catalog_schemas import AIClassification, CustomSubRoleResult, SkillRecord
from services.catalog_store import CatalogStore, duplicate_error
from settings.config import get_settings

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100


def normalize_name(name: Optional[str], field: str = "name") -> str:
    name = (name or "").strip()
    if len(name) < MIN_NAME_LENGTH or len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"{field} must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters")
    return name


def normalize_synonyms(synonyms: Optional[list[str]], name: str) -> list[str]:
    seen = {name.lower()}
    cleaned = []
    for synonym in synonyms or []:
        synonym = str(synonym).strip()
        if not synonym or synonym.lower() in seen:
            continue
        if len(synonym) > MAX_NAME_LENGTH:
            raise ValidationError(f"synonyms must be at most {MAX_NAME_LENGTH} characters")
        seen.add(synonym.lower())
        cleaned.append(synonym)
    return cleaned


class CustomEntityService:
    def __init__(self, store: CatalogStore, classifier: Optional[SubRoleClassifier] = None):
        self.store = store
        self.classifier = classifier or SubRoleClassifier()

    async def create_custom_sub_role(self, tenant_id: str, actor_id: str, custom_name: str) -> CustomSubRoleResult:
        name = normalize_name(custom_name, "customName")

        existing = await self.store.find_sub_role_by_name(name, tenant_id)
        if existing is not None:
            raise duplicate_error("Sub-role", name, existing)

        parent_roles = [
            {"id": role.id, "name": role.canonical_name}
            for role in await self.store.list_roles()
        ]
        if not parent_roles:
            raise NotFoundError("No parent roles are available")
        await self.store.end_read_transaction()

        # Outside any transaction: classification failure aborts creation,
        # synonym failure degrades to an empty list.
        classification = await self.classifier.classify_sub_role(name, parent_roles)
        synonyms = await self.classifier.generate_synonyms(name)

        sub_role = await self.store.create_custom_sub_role(
            tenant_id=tenant_id,
            actor_id=actor_id,
            name=name,
            synonyms=synonyms,
            parent_role_id=classification["parent_role_id"],
        )

        low_confidence = classification["confidence"] < get_settings().low_confidence_threshold
        if low_confidence:
            logger.warning(
                f"Low-confidence classification for custom sub-role '{name}' "
                f"(tenant {tenant_id}): {classification['confidence']:.2f}, "
                f"alternatives {classification['alternatives']}"
            )
        logger.info(f"Created custom sub-role {sub_role.id} '{name}' for tenant {tenant_id}")

        return CustomSubRoleResult(
            sub_role=sub_role,
            ai_classification=AIClassification(
                parent_role_id=classification["parent_role_id"],
                parent_role_name=classification["parent_role_name"],
                confidence=classification["confidence"],
                reasoning=classification["reasoning"],
                alternatives=classification["alternatives"],
                model=classification["model"],
                low_confidence=low_confidence,
            ),
        )

    async def delete_custom_sub_role(self, sub_role_id: int, tenant_id: str) -> None:
        await self.store.delete_custom_sub_role(sub_role_id, tenant_id)
        logger.info(f"Deleted custom sub-role {sub_role_id} for tenant {tenant_id}")

    async def create_custom_skill(
        self,
        tenant_id: str,
        actor_id: str,
        name: str,
        synonyms: Optional[list[str]] = None,
        known_name: Optional[str] = None
    ) -> SkillRecord:
        name = normalize_name(name)
        if known_name is not None:
            known_name = normalize_name(known_name, "knownName")
        synonyms = normalize_synonyms(synonyms, name)

        existing = await self.store.find_skill_by_name(name, tenant_id)
        if existing is not None:
            raise duplicate_error("Skill", name, existing)

        skill = await self.store.create_custom_skill(
            tenant_id=tenant_id,
            actor_id=actor_id,
            name=name,
            synonyms=synonyms,
            known_name=known_name,
        )
        logger.info(f"Created custom skill {skill.id} '{name}' for tenant {tenant_id}")
        return skill

    async def delete_custom_skill(self, skill_id: int, tenant_id: str, actor_id: Optional[str] = None) -> None:
        await self.store.soft_delete_custom_skill(skill_id, tenant_id, actor_id)
        logger.info(f"Deactivated custom skill {skill_id} for tenant {tenant_id}")
