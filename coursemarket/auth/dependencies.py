"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from JWT
- Admin and superadmin gates
- AuthService from app state
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from coursemarket.auth.permissions import UserRole, is_admin, is_superadmin
from coursemarket.auth.schemas import CurrentUserClaims
from coursemarket.auth.security import decode_access_token
from coursemarket.auth.service import AuthService, UserNotFoundError
from coursemarket.core.context import set_user_id


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> CurrentUserClaims:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please login",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        claims = CurrentUserClaims(
            id=payload["sub"],
            email=payload.get("email", ""),
            role=payload.get("role", "user"),
            main_role=payload.get("main_role"),
        )
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    # Set user_id in context for logging
    set_user_id(str(claims.id))

    return claims


async def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    service = getattr(request.app.state, "auth_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth service not available",
        )
    return service


async def get_stored_role_claims(
    claims: Annotated[CurrentUserClaims, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> CurrentUserClaims:
    """Claims with the role read from the stored user, not the token.

    A role change takes effect on the next request instead of at token expiry.

    Raises:
        HTTPException(401): If the user no longer exists
    """
    try:
        user = await auth_service.get_user(claims.id)
    except UserNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please login",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    return claims.model_copy(
        update={"role": UserRole(user.role), "main_role": user.main_role}
    )


async def require_admin(
    user: Annotated[CurrentUserClaims, Depends(get_stored_role_claims)],
) -> CurrentUserClaims:
    """Require ADMIN role or SUPERADMIN override."""
    if not is_admin(user.role, user.main_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not admin",
        )
    return user


async def require_superadmin(
    user: Annotated[CurrentUserClaims, Depends(get_stored_role_claims)],
) -> CurrentUserClaims:
    """Require SUPERADMIN override."""
    if not is_superadmin(user.main_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This endpoint is assigned to superadmin",
        )
    return user


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[CurrentUserClaims, Depends(get_current_user)]
AdminUser = Annotated[CurrentUserClaims, Depends(require_admin)]
SuperAdminUser = Annotated[CurrentUserClaims, Depends(require_superadmin)]

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
