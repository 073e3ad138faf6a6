"""
Bearer-token identity for admin endpoints

Tokens are issued by the external identity provider; this module only
verifies them and extracts the user id.
"""
import logging

from fastapi import Depends, Request
from jose import JWTError, jwt

from fundraiser.config import Settings
from fundraiser.dependencies import get_app_settings
from fundraiser.errors import AuthenticationError, InfrastructureError


logger = logging.getLogger(__name__)


def decode_user_id(token: str, settings: Settings) -> str:
    """
    Verify a JWT and return the user id claim

    Raises:
        InfrastructureError: No verification key configured
        AuthenticationError: Token invalid, expired or without the user claim
    """
    if not settings.auth.jwt_key:
        logger.error("AUTH_JWT_KEY is not set")
        raise InfrastructureError("Authentication is not configured")
    try:
        claims = jwt.decode(
            token,
            settings.auth.jwt_key,
            algorithms=settings.auth.jwt_algorithms,
            options={"verify_aud": False},
        )
    except JWTError as exc:
        logger.warning(f"Rejected token: {exc}")
        raise AuthenticationError() from exc

    user_id = claims.get(settings.auth.user_claim)
    if not user_id:
        raise AuthenticationError()
    return user_id


async def require_user(request: Request, settings: Settings = Depends(get_app_settings)) -> str:
    """FastAPI dependency: authenticated user id, or 401"""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError()
    return decode_user_id(token.strip(), settings)
