"""Types for sub-role classification."""

from typing import List, TypedDict


class ParentRoleCandidate(TypedDict):
    """A parent role the model may choose from.

    Attributes:
        id: The role id.
        name: The role's canonical name.
    """

    id: int
    name: str


class ClassificationResult(TypedDict):
    """Validated classification of a custom sub-role.

    Attributes:
        parent_role_id: Id of the chosen parent role, always one of the candidates.
        parent_role_name: Canonical name of the chosen parent role.
        confidence: Model confidence (0.0 to 1.0).
        reasoning: Short explanation from the model.
        alternatives: Other candidate ids worth offering to the user.
        model: Model that produced the classification.
    """

    parent_role_id: int
    parent_role_name: str
    confidence: float
    reasoning: str
    alternatives: List[int]
    model: str
