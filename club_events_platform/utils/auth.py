"""
Identity Provider token handling.

The Identity Provider signs bearer tokens; this module verifies them and
extracts the stable user id and email. ``create_identity_token`` mints
tokens with the same secret for local development and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from ..config import get_settings
from .exceptions import AuthenticationError


class IdentityClaims(BaseModel):
    """Claims taken from a verified identity token."""
    user_id: str
    email: str


def create_identity_token(
    user_id: str,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed identity token.

    Args:
        user_id: Identity Provider user id, stored as ``sub``
        email: Email claim
        expires_delta: Optional custom expiration time

    Returns:
        The encoded JWT
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.IDENTITY_TOKEN_EXPIRE_MINUTES)
    )

    claims = {"sub": user_id, "email": email, "exp": expire}
    if settings.IDENTITY_TOKEN_ISSUER:
        claims["iss"] = settings.IDENTITY_TOKEN_ISSUER
    if settings.IDENTITY_TOKEN_AUDIENCE:
        claims["aud"] = settings.IDENTITY_TOKEN_AUDIENCE

    return jwt.encode(
        claims,
        settings.IDENTITY_TOKEN_SECRET,
        algorithm=settings.IDENTITY_TOKEN_ALGORITHM
    )


def verify_identity_token(token: str) -> IdentityClaims:
    """
    Verify and decode an identity token.

    Args:
        token: The bearer token to verify

    Returns:
        IdentityClaims of the signed-in user

    Raises:
        AuthenticationError: If the token is invalid, expired or lacks claims
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.IDENTITY_TOKEN_SECRET,
            algorithms=[settings.IDENTITY_TOKEN_ALGORITHM],
            audience=settings.IDENTITY_TOKEN_AUDIENCE,
            issuer=settings.IDENTITY_TOKEN_ISSUER,
            options={"verify_aud": settings.IDENTITY_TOKEN_AUDIENCE is not None}
        )
    except JWTError as e:
        raise AuthenticationError(f"Invalid identity token: {e}")

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise AuthenticationError("Identity token is missing the sub or email claim")

    return IdentityClaims(user_id=user_id, email=email)
