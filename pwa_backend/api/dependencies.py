"""FastAPI dependencies for authentication, database and push dispatch."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from pwa_backend.config import PushConfig, get_push_config
from pwa_backend.database import get_db
from pwa_backend.models.user import User
from pwa_backend.services.auth import verify_access_token
from pwa_backend.services.errors import AuthenticationError
from pwa_backend.services.push_delivery import DeliveryClient
from pwa_backend.services.push_dispatcher import PushDispatcher
from pwa_backend.services.user_repository import UserRepository

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated, active user from the bearer token."""
    if credentials is None:
        raise _unauthorized("Access token required")

    try:
        user_id = verify_access_token(credentials.credentials)
    except AuthenticationError as e:
        raise _unauthorized(e.message) from e

    user = UserRepository(db).find_by_id(user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("User is deactivated")

    return user


def get_user_repository(
    db: Annotated[Session, Depends(get_db)],
) -> UserRepository:
    """Get a user repository bound to the request session."""
    return UserRepository(db)


def get_delivery_client(
    config: Annotated[PushConfig, Depends(get_push_config)],
) -> DeliveryClient:
    """Get the web push delivery client."""
    return DeliveryClient(config)


def get_push_dispatcher(
    repository: Annotated[UserRepository, Depends(get_user_repository)],
    delivery_client: Annotated[DeliveryClient, Depends(get_delivery_client)],
    config: Annotated[PushConfig, Depends(get_push_config)],
) -> PushDispatcher:
    """Get a push dispatcher with its collaborators."""
    return PushDispatcher(repository, delivery_client, config)
