"""
FastAPI dependencies for authentication and authorization.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..services.user_service import UserService
from .auth import IdentityClaims, verify_identity_token
from .exceptions import AuthenticationError, AuthorizationError, UserNotFoundError
from .logging_config import log_security_event


# HTTP Bearer token scheme; missing headers are reported by get_identity
security = HTTPBearer(auto_error=False)


async def get_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> IdentityClaims:
    """
    Resolve the caller's identity from the bearer token.

    Raises:
        AuthenticationError: If the token is missing or invalid
    """
    if credentials is None:
        raise AuthenticationError("Missing bearer token")

    try:
        return verify_identity_token(credentials.credentials)
    except AuthenticationError as e:
        log_security_event(
            "identity_token_rejected",
            {"path": request.url.path, "reason": e.message}
        )
        raise


async def get_current_user(
    request: Request,
    identity: IdentityClaims = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get the mirrored profile of the signed-in user.

    Raises:
        UserNotFoundError: If the identity was never synced into the store
    """
    user = await UserService(db).get_user_by_id(identity.user_id)
    if user is None:
        raise UserNotFoundError(identity.user_id)

    request.state.user_id = user.id
    return user


async def get_current_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get the current user, requiring the admin role.

    Raises:
        AuthorizationError: If the user is not an admin
    """
    if not current_user.is_admin:
        raise AuthorizationError("Administrator role required", required_permission="admin")
    return current_user
