"""Authentication service for JWT and password handling."""

import logging
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pwa_backend.config import get_settings
from pwa_backend.models.user import User
from pwa_backend.services.errors import AuthenticationError, ConflictError
from pwa_backend.services.user_repository import UserRepository, normalize_email

logger = logging.getLogger(__name__)

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def set_password(user: User, password: str) -> None:
    """Replace the stored hash for a new raw password."""
    user.password_hash = get_password_hash(password)


def create_access_token(user_id: int) -> str:
    """Create a JWT access token."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def verify_access_token(token: str) -> int:
    """Decode a JWT token and return the user id it was issued for."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise AuthenticationError("Token expired") from e
    except JWTError as e:
        raise AuthenticationError("Invalid token") from e

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise AuthenticationError("Invalid token")
    return int(subject)


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate an active user by email and password.

    Unknown email and wrong password are indistinguishable to the caller.
    """
    user = UserRepository(db).find_by_email(email, active_only=True)
    if not user:
        pwd_context.dummy_verify()
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def register_user(db: Session, username: str, email: str, password: str) -> User:
    """Create a new user, refusing a taken email or username."""
    users = UserRepository(db)
    if users.find_by_email_or_username(email, username):
        raise ConflictError("User already exists")

    user = User(username=username, email=normalize_email(email))
    set_password(user, password)
    try:
        users.add(user)
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("User already exists") from e
    logger.info(f"Registered user {user.id} ({user.username})")
    return user


def rename_user(db: Session, user: User, username: str) -> User:
    """Change a user's username if it is free."""
    users = UserRepository(db)
    if username != user.username:
        if users.find_by_username(username):
            raise ConflictError("Username already in use")
        user.username = username
    return users.save(user)


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    """Rotate a user's password after checking the current one."""
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")
    set_password(user, new_password)
    UserRepository(db).save(user)
    logger.info(f"Password changed for user {user.id}")
