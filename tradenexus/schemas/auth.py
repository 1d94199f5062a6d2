"""Authentication schemas for JWT bearer tokens."""

from typing import Optional

from pydantic import BaseModel, Field


class JWTClaims(BaseModel):
    """Decoded JWT claims."""

    sub: str = Field(..., description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User email")
    role: Optional[str] = Field(None, description="User role")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")


class CurrentUser(BaseModel):
    """Authenticated user resolved from the bearer token."""

    id: str = Field(..., description="User ID (token subject)")
    email: Optional[str] = Field(None, description="User email")
    role: str = Field(default="user", description="User role")
