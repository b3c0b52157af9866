from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog_store import CatalogStore
from services.custom_entity_service import CustomEntityService
from services.grading_projection_service import GradingProjectionService
from services.role_fit_service import RoleFitService
from services.soft_skill_scoring_service import SoftSkillScoringService
from services.synonym_search import SynonymSearchService
from settings.config import get_settings
from settings.database import get_db


class AuthContext:
    """Caller identity resolved from the bearer token."""

    def __init__(self, actor_id: str, tenant_id: str, email: str, role: str):
        self.actor_id = actor_id
        self.tenant_id = tenant_id
        self.email = email
        self.role = role
        self.is_admin = role in ["Super Admin", "Admin"]


# Optional security - doesn't auto-raise 403 when no Bearer token is provided
_optional_security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token verification is not configured"
        )
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")


def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(_optional_security),
) -> AuthContext:
    """
    Resolve tenant and actor from the JWT.

    In local development a default context is returned when no auth header
    is sent; everywhere else a valid token is required.
    """
    settings = get_settings()
    if credentials:
        claims = decode_token(credentials.credentials)

        if not claims.get("user_id"):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User ID not found in token"
            )
        if not claims.get("tenant_id"):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User is not associated with a tenant"
            )
        auth = AuthContext(
            actor_id=str(claims["user_id"]),
            tenant_id=str(claims["tenant_id"]),
            email=claims.get("email", ""),
            role=claims.get("role", "User"),
        )
    elif settings.is_local:
        auth = AuthContext(
            actor_id="1",
            tenant_id=settings.local_tenant_id,
            email="local@dev.com",
            role="Admin",
        )
    else:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    request.state.tenant_id = auth.tenant_id
    return auth


async def get_catalog_store(db: AsyncSession = Depends(get_db)) -> AsyncGenerator[CatalogStore, None]:
    yield CatalogStore(db)


def get_search_service(store: CatalogStore = Depends(get_catalog_store)) -> SynonymSearchService:
    return SynonymSearchService(store)


def get_custom_entity_service(store: CatalogStore = Depends(get_catalog_store)) -> CustomEntityService:
    return CustomEntityService(store)


def get_grading_service(store: CatalogStore = Depends(get_catalog_store)) -> GradingProjectionService:
    return GradingProjectionService(store)


def get_scoring_service(store: CatalogStore = Depends(get_catalog_store)) -> SoftSkillScoringService:
    return SoftSkillScoringService(store)


def get_role_fit_service(store: CatalogStore = Depends(get_catalog_store)) -> RoleFitService:
    return RoleFitService(store)
