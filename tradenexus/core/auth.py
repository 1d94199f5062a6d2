"""Bearer-token authentication for the job routes."""

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tradenexus.core.jwt import jwt_verifier
from tradenexus.schemas.auth import CurrentUser
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

# auto_error=False so a missing header gets our 401 body instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Resolve the caller from the ``Authorization: Bearer`` header.

    Raises:
        HTTPException: 401 when the header is missing or the token does not verify
    """
    if credentials is None:
        LOGGER.warning("Request without bearer token")
        raise _unauthorized("Authorization header missing")

    try:
        claims = await jwt_verifier.verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        LOGGER.warning("Rejected bearer token", extra={"reason": str(e)})
        raise _unauthorized("Invalid authentication token") from e

    return CurrentUser(id=claims.sub, email=claims.email, role=claims.role or "user")
