"""JWT verification for bearer tokens (HS256 shared secret by default)."""

from typing import Any, Dict, Optional

import jwt

from tradenexus.core.config import AuthSettings, settings
from tradenexus.schemas.auth import JWTClaims
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JWTVerifier:
    """Verifies and decodes signed JWTs with PyJWT."""

    def __init__(self, auth_settings: AuthSettings):
        self.secret = auth_settings.jwt_secret
        self.algorithm = auth_settings.jwt_algorithm
        self.audience = auth_settings.jwt_audience

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify signature and expiry, then parse the claims.

        Raises:
            jwt.InvalidTokenError: If the token is malformed, expired or badly signed
        """
        options: Dict[str, Any] = {"require": ["sub"]}
        if not self.audience:
            options["verify_aud"] = False

        payload = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            audience=self.audience,
            options=options,
        )
        return JWTClaims(**payload)

    def create_token(self, subject: str, email: Optional[str] = None, role: Optional[str] = None, **extra: Any) -> str:
        """Sign a token for ``subject``; used by tooling and tests."""
        payload: Dict[str, Any] = {"sub": subject, **extra}
        if email:
            payload["email"] = email
        if role:
            payload["role"] = role
        if self.audience:
            payload.setdefault("aud", self.audience)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)


jwt_verifier = JWTVerifier(settings.auth)
