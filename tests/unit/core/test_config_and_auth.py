"""Unit tests for settings helpers and JWT verification."""

import jwt
import pytest

from tradenexus.core.config import AuthSettings, DatabaseSettings, Settings
from tradenexus.core.jwt import JWTVerifier


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("postgres://u:p@db:5432/app", "postgresql+asyncpg://u:p@db:5432/app"),
        ("postgresql://u:p@db/app?sslmode=require&schema=public", "postgresql+asyncpg://u:p@db/app?ssl=require"),
        ("sqlite+aiosqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ],
)
def test_database_url_normalisation(raw, expected):
    assert DatabaseSettings(DATABASE_URL=raw).connection_url == expected


def test_cors_origins_are_split():
    assert Settings(CORS_ORIGIN="https://a.example, https://b.example").cors_origins == [
        "https://a.example",
        "https://b.example",
    ]
    assert Settings(CORS_ORIGIN="").cors_origins == ["*"]


class TestJWTVerifier:
    @pytest.fixture
    def verifier(self) -> JWTVerifier:
        return JWTVerifier(AuthSettings(JWT_SECRET="unit-secret"))

    @pytest.mark.asyncio
    async def test_round_trip_claims(self, verifier):
        token = verifier.create_token("user-42", email="ops@example.com", role="admin")

        claims = await verifier.verify_token(token)

        assert claims.sub == "user-42"
        assert claims.role == "admin"

    @pytest.mark.asyncio
    async def test_wrong_secret_is_rejected(self, verifier):
        token = JWTVerifier(AuthSettings(JWT_SECRET="other")).create_token("user-42")

        with pytest.raises(jwt.InvalidTokenError):
            await verifier.verify_token(token)

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, verifier):
        token = verifier.create_token("user-42", exp=1)

        with pytest.raises(jwt.ExpiredSignatureError):
            await verifier.verify_token(token)

    @pytest.mark.asyncio
    async def test_subject_is_required(self, verifier):
        token = jwt.encode({"email": "x@example.com"}, "unit-secret", algorithm="HS256")

        with pytest.raises(jwt.InvalidTokenError):
            await verifier.verify_token(token)
