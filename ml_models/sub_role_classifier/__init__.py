from .exceptions import SubRoleClassifierException
from .classifier import SubRoleClassifier
from .types import ClassificationResult, ParentRoleCandidate

__all__ = ["SubRoleClassifier", "ClassificationResult", "ParentRoleCandidate", "SubRoleClassifierException"]
