"""Parent-role classification for custom sub-roles using the LLM."""

import math
from typing import Awaitable, Callable, Dict, List, Optional

from common.logger import logger
from constants.llm_models import (
    MAX_GENERATED_SYNONYMS,
    SUB_ROLE_CLASSIFIER_MODEL_CONFIG,
    SUB_ROLE_SYNONYMS_MODEL_CONFIG,
)
from settings.config import get_settings
from .exceptions import ClassifierLLMValidationFailedError, SubRoleClassifierException
from .prompts import build_classification_messages, build_synonym_messages
from .types import ClassificationResult, ParentRoleCandidate
from .utils import achat, extract_json_object

MAX_ALTERNATIVES = 3

ChatFn = Callable[[List[Dict[str, str]], Dict, float], Awaitable[str]]


def _as_role_id(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def validate_llm_classification_data(
    data: Dict, parent_roles: List[ParentRoleCandidate], model: str
) -> ClassificationResult:
    """Validate the classification returned by the LLM against the supplied parents."""
    names_by_id = {role["id"]: role["name"] for role in parent_roles}

    if "parent_role_id" not in data:
        raise ClassifierLLMValidationFailedError("Missing 'parent_role_id' in classification")
    parent_role_id = _as_role_id(data["parent_role_id"])
    if parent_role_id is None or parent_role_id not in names_by_id:
        raise ClassifierLLMValidationFailedError(
            f"parent_role_id {data['parent_role_id']!r} is not one of the candidate roles"
        )

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ClassifierLLMValidationFailedError("'confidence' must be a number")
    confidence = float(confidence)
    if math.isnan(confidence) or confidence < 0 or confidence > 1:
        raise ClassifierLLMValidationFailedError("'confidence' must be between 0 and 1")

    alternatives = []
    raw_alternatives = data.get("alternatives")
    if isinstance(raw_alternatives, list):
        for value in raw_alternatives:
            role_id = _as_role_id(value)
            if role_id in names_by_id and role_id != parent_role_id and role_id not in alternatives:
                alternatives.append(role_id)

    reasoning = data.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = "No reasoning provided"

    return ClassificationResult(
        parent_role_id=parent_role_id,
        parent_role_name=names_by_id[parent_role_id],
        confidence=confidence,
        reasoning=reasoning.strip(),
        alternatives=alternatives[:MAX_ALTERNATIVES],
        model=model,
    )


def clean_synonyms(data: Dict, custom_name: str) -> List[str]:
    """Keep distinct, non-empty string synonyms other than the name itself."""
    raw = data.get("synonyms")
    if not isinstance(raw, list):
        return []
    seen = {custom_name.strip().lower()}
    synonyms = []
    for value in raw:
        if not isinstance(value, str):
            continue
        synonym = value.strip()
        if not synonym or synonym.lower() in seen:
            continue
        seen.add(synonym.lower())
        synonyms.append(synonym)
    return synonyms[:MAX_GENERATED_SYNONYMS]


class SubRoleClassifier:
    """
    Assigns a parent role to a custom sub-role and suggests synonyms.

    Classification is a single attempt under a hard timeout; every failure
    surfaces as a ``ClassificationError``. Synonym generation is best-effort
    and degrades to an empty list.
    """

    def __init__(
        self,
        chat: ChatFn = achat,
        classification_timeout: Optional[float] = None,
        synonym_timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.chat = chat
        self.classification_timeout = classification_timeout or settings.classification_timeout_seconds
        self.synonym_timeout = synonym_timeout or settings.synonym_timeout_seconds
        self.classification_config = {
            **SUB_ROLE_CLASSIFIER_MODEL_CONFIG,
            "model": settings.classification_model,
        }
        self.synonyms_config = {
            **SUB_ROLE_SYNONYMS_MODEL_CONFIG,
            "model": settings.synonym_model,
        }

    async def classify_sub_role(
        self,
        custom_name: str,
        parent_roles: List[ParentRoleCandidate],
        timeout: Optional[float] = None,
    ) -> ClassificationResult:
        if not parent_roles:
            raise SubRoleClassifierException("No parent roles available for classification")

        messages = build_classification_messages(custom_name, parent_roles)
        try:
            content = await self.chat(messages, self.classification_config, timeout or self.classification_timeout)
            data = extract_json_object(content)
            result = validate_llm_classification_data(data, parent_roles, self.classification_config["model"])
        except SubRoleClassifierException as e:
            logger.warning(f"Classification of sub-role '{custom_name}' failed: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Error calling the LLM to classify sub-role '{custom_name}': {e}")
            raise SubRoleClassifierException(f"AI classification failed: {e}") from e

        logger.info(
            f"Classified sub-role '{custom_name}' under role {result['parent_role_id']} "
            f"with confidence {result['confidence']:.2f}"
        )
        return result

    async def generate_synonyms(self, custom_name: str) -> List[str]:
        messages = build_synonym_messages(custom_name)
        try:
            content = await self.chat(messages, self.synonyms_config, self.synonym_timeout)
            return clean_synonyms(extract_json_object(content), custom_name)
        except Exception as e:
            logger.warning(f"Synonym generation for '{custom_name}' failed, continuing without synonyms: {e}")
            return []
