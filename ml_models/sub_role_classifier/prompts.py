"""Prompt templates for sub-role classification and synonym generation."""

from typing import Dict, List

from constants.llm_models import MAX_GENERATED_SYNONYMS
from .types import ParentRoleCandidate

CLASSIFICATION_SYSTEM_PROMPT = """You are an expert in job role classification.
Your task is to analyze a custom job sub-role and assign it to the most appropriate parent role.

Available parent roles:
{ROLES}

Rules:
1. Choose the SINGLE most appropriate parent role, using only the IDs listed above
2. Provide a confidence score (0.0-1.0) where:
   - 0.9-1.0 = Very confident match
   - 0.7-0.89 = Confident match
   - 0.5-0.69 = Moderate confidence
   - <0.5 = Low confidence
3. Explain your reasoning in 1-2 sentences
4. If confidence < 0.7, provide up to 3 alternative parent role IDs"""

CLASSIFICATION_USER_PROMPT = """Classify this custom sub-role: "{NAME}"

Return ONLY valid JSON with this exact structure (no markdown, no code blocks):
{{
  "parent_role_id": <number>,
  "parent_role_name": <string>,
  "confidence": <float 0.0-1.0>,
  "reasoning": <string>,
  "alternatives": [<alternative parent role IDs as numbers, or an empty array>]
}}"""

SYNONYMS_PROMPT = """Generate 3-{MAX} common synonyms or alternative names for this job role: "{NAME}"

Return ONLY valid JSON with this structure (no markdown, no code blocks):
{{
  "synonyms": ["synonym1", "synonym2", "synonym3"]
}}

Guidelines:
- Include common abbreviations (e.g., "ML Engineer" for "Machine Learning Engineer")
- Include industry variations (e.g., "Frontend Developer" and "Front-end Developer")
- Keep it concise and relevant"""


def build_classification_messages(custom_name: str, parent_roles: List[ParentRoleCandidate]) -> List[Dict[str, str]]:
    roles = "\n".join(f"ID {role['id']}: {role['name']}" for role in parent_roles)
    return [
        {"role": "system", "content": CLASSIFICATION_SYSTEM_PROMPT.format(ROLES=roles)},
        {"role": "user", "content": CLASSIFICATION_USER_PROMPT.format(NAME=custom_name)},
    ]


def build_synonym_messages(custom_name: str) -> List[Dict[str, str]]:
    return [
        {"role": "user", "content": SYNONYMS_PROMPT.format(NAME=custom_name, MAX=MAX_GENERATED_SYNONYMS)},
    ]
