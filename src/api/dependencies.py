"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.database import get_db
from src.errors import AuthenticationError
from src.models.user import User
from src.services.auth import read_token
from src.services.container import Services
from src.services.recipe_service import RecipeService

# Missing credentials are reported as 401 by get_current_user
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    if credentials is None:
        raise AuthenticationError("Authorization header is required")

    user_id = read_token(credentials.credentials)
    if user_id is None:
        raise AuthenticationError("Invalid authentication credentials")

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")

    return user


def get_services(request: Request) -> Services:
    """Get the service graph built at startup."""
    return request.app.state.services


def get_recipe_service(
    db: Annotated[Session, Depends(get_db)],
    services: Annotated[Services, Depends(get_services)],
) -> RecipeService:
    """Get recipe service with dependencies."""
    return RecipeService(db, services.pipeline)
