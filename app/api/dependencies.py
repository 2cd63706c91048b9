# ============================================================================
# FILE: app/api/dependencies.py
# Identity dependencies - tokens are issued by the hosted auth provider
# ============================================================================
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from typing import Callable
from uuid import UUID
import logging

from app.config.settings import settings
from app.schemas.identity import Actor, Role

logger = logging.getLogger(__name__)

# ============================================================================
# Security Schemes
# ============================================================================

jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Access token issued by the portal's auth provider"
)


# ============================================================================
# JWT Token Functions
# ============================================================================

def verify_access_token(token: str) -> dict:
    """
    Verify and decode an access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def actor_from_claims(payload: dict) -> Actor:
    """
    Build the acting user from token claims.

    The portal stores the campus role in ``app_metadata.role``; users without
    one are treated as students.
    """
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject")

    try:
        user_id = UUID(subject)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid subject in token")

    role_claim = (payload.get("app_metadata") or {}).get("role") or Role.STUDENT.value
    try:
        role = Role(role_claim)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Unknown role '{role_claim}'")

    return Actor(user_id=user_id, role=role)


# ============================================================================
# Dependencies
# ============================================================================

async def get_current_actor(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security)
) -> Actor:
    """Acting user for the request. Identity is trusted as issued by the auth provider."""
    payload = verify_access_token(credentials.credentials)
    return actor_from_claims(payload)


def require_roles(*roles: Role) -> Callable:
    """
    Dependency factory restricting an endpoint to some roles.

    Usage:
        @router.post("/rules", dependencies=[Depends(require_roles(Role.TEACHER, Role.ADMIN))])
    """

    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires one of: {', '.join(r.value for r in roles)}"
            )
        return actor

    return role_checker
