"""Error taxonomy shared by the catalog, classifier and scoring services.

Every public operation either returns a value or raises exactly one of the
exceptions below. The HTTP layer maps them to status codes through
``status_code``; ``code`` is a stable machine-readable identifier.
"""

from typing import Optional


class CatalogException(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(CatalogException):
    """Malformed input: length, range or missing field."""

    status_code = 400
    code = "validation_error"


class AuthorizationError(CatalogException):
    """Tenant visibility or ownership violation."""

    status_code = 403
    code = "authorization_error"


class NotFoundError(CatalogException):
    """Referenced id is absent or invisible to the caller's tenant."""

    status_code = 404
    code = "not_found"


class DuplicateError(CatalogException):
    """Uniqueness collision when creating a catalog entry."""

    status_code = 409
    code = "duplicate"

    def __init__(self, message: str, scope: Optional[str] = None):
        super().__init__(message)
        self.scope = scope

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["scope"] = self.scope
        return data


class ClassificationError(CatalogException):
    """AI failure, timeout, schema violation or invalid parent id."""

    status_code = 502
    code = "classification_error"
    guidance = "Retry the request or choose the parent role manually."

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["guidance"] = self.guidance
        return data


class ConflictError(CatalogException):
    """Attempt to delete a row that is still referenced."""

    status_code = 409
    code = "conflict"


class InternalError(CatalogException):
    """Data-access failure the core cannot recover from."""

    status_code = 500
    code = "internal_error"
