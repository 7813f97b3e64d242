"""Pytest configuration and fixtures."""

import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient
from py_vapid import Vapid
from py_vapid.utils import b64urlencode
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pwa_backend.config import PushConfig, get_push_config
from pwa_backend.database import Base, get_db
from pwa_backend.main import app
from pwa_backend.models import PushSubscription, User
from pwa_backend.services.auth import get_password_hash
from pwa_backend.services.push_delivery import DeliveryError, DeliveryResult


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


class FakeDeliveryClient:
    """Delivery client that records sends and fails endpoints on demand."""

    def __init__(self):
        self.failures: dict[str, int | None] = {}
        self.fail_all_with: int | None = None
        self.calls: list[tuple] = []

    def send(self, subscription, payload, options=None):
        self.calls.append((subscription, payload, options))
        if self.fail_all_with is not None:
            raise DeliveryError(self.fail_all_with, "rejected")
        if subscription.endpoint in self.failures:
            raise DeliveryError(self.failures[subscription.endpoint], "rejected")
        return DeliveryResult(status_code=201)


TEST_PUSH_CONFIG = PushConfig(
    public_key="BTestPublicKeyForPushNotifications0000000000",
    private_key="test-private-key",
    contact_email="admin@example.com",
    is_configured=True,
)

UNCONFIGURED_PUSH_CONFIG = PushConfig(public_key=None, private_key=None, contact_email=None)


def generate_browser_keys() -> tuple[str, str]:
    """Return a (p256dh, auth) pair shaped like the keys a browser issues."""
    public_key = ec.generate_private_key(ec.SECP256R1()).public_key()
    p256dh = public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    return b64urlencode(p256dh), b64urlencode(os.urandom(16))


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL", "").startswith("postgresql"):
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").rsplit("/", 1)[0] + "/pwa_app_test"
else:
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def delivery_client():
    """A fake delivery client shared by the app and the test."""
    return FakeDeliveryClient()


@pytest.fixture(scope="function")
def client(db, delivery_client):
    """Create a test client with database and push overrides."""
    from pwa_backend.api.dependencies import get_delivery_client

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_config] = lambda: TEST_PUSH_CONFIG
    app.dependency_overrides[get_delivery_client] = lambda: delivery_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    response = client.post(
        "/api/auth/register",
        json={"username": "tester", "email": "test@example.com", "password": "testpass123"},
    )
    assert response.status_code == 201
    data = response.json()
    token = data["token"]

    return AuthHeaders(
        {"Authorization": f"Bearer {token}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def make_user(db):
    """Factory that stores a user with the given subscription endpoints."""

    def _make_user(
        username: str,
        email: str | None = None,
        endpoints: list[str] | None = None,
        is_active: bool = True,
        keys: tuple[str, str] | None = None,
    ) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=get_password_hash("password123"),
            is_active=is_active,
        )
        db.add(user)
        db.flush()
        for endpoint in endpoints or []:
            db.add(
                PushSubscription(
                    user_id=user.id,
                    endpoint=endpoint,
                    p256dh_key=keys[0] if keys else f"p256dh-{endpoint[-6:]}",
                    auth_key=keys[1] if keys else "auth-secret",
                )
            )
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def browser_keys():
    """Factory for valid subscription keys."""
    return generate_browser_keys


@pytest.fixture
def vapid_push_config():
    """Push configuration signed with a freshly generated VAPID key."""
    vapid = Vapid()
    vapid.generate_keys()
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")
    return PushConfig(
        public_key=TEST_PUSH_CONFIG.public_key,
        private_key=b64urlencode(private_raw),
        contact_email="admin@example.com",
        is_configured=True,
    )


@pytest.fixture
def dispatcher(db, delivery_client):
    """Dispatcher over the test session and the fake delivery client."""
    from pwa_backend.services.push_dispatcher import PushDispatcher
    from pwa_backend.services.user_repository import UserRepository

    return PushDispatcher(UserRepository(db), delivery_client, TEST_PUSH_CONFIG)


@pytest.fixture
def push_unconfigured(client):
    """Make the running app behave as if VAPID credentials were missing."""
    app.dependency_overrides[get_push_config] = lambda: UNCONFIGURED_PUSH_CONFIG
    yield
    app.dependency_overrides[get_push_config] = lambda: TEST_PUSH_CONFIG
