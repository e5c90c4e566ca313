"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Credentials(BaseModel):
    """Email and password, as sent to login."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class Registration(Credentials):
    name: str | None = Field(None, max_length=255)


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None


class AuthResponse(BaseModel):
    """Bearer token plus the account it belongs to."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    user: AccountResponse
