"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user
from src.database import get_db
from src.errors import AuthenticationError
from src.models.user import User
from src.schemas.auth import AccountResponse, AuthResponse, Credentials, Registration
from src.services.auth import authenticate, issue_token, register_account

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _token_for(user: User) -> AuthResponse:
    return AuthResponse(access_token=issue_token(user), user=AccountResponse.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: Registration,
    db: Annotated[Session, Depends(get_db)],
):
    """Create an account and sign it in."""
    return _token_for(register_account(db, data.email, data.password, data.name))


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: Credentials,
    db: Annotated[Session, Depends(get_db)],
):
    user = authenticate(db, credentials.email, credentials.password)
    if user is None:
        raise AuthenticationError("Incorrect email or password")
    return _token_for(user)


@router.get("/me", response_model=AccountResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """The account the bearer token belongs to."""
    return current_user
