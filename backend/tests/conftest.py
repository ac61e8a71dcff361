"""Shared test fixtures."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from earnhub.api.main import create_app
from earnhub.auth.local import LocalAuthService, ROLE_ADMIN, ROLE_USER
from earnhub.referral.service import ReferralService
from earnhub.settings import Settings
from earnhub.storage.db import Database
from earnhub.storage.models import Admin, User

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"
PASSWORD = "S3cure!pass"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env="testing",
        jwt_secret_key=TEST_SECRET,
        database_url="sqlite://",
    )


@pytest.fixture
def database(settings: Settings) -> Generator[Database, None, None]:
    db = Database(settings.database_url)
    db.create_tables()
    yield db
    db.drop_tables()
    db.dispose()


@pytest.fixture
def session(database: Database) -> Generator[Session, None, None]:
    with database.session() as session:
        yield session


@pytest.fixture
def auth_service(settings: Settings) -> LocalAuthService:
    return LocalAuthService(settings)


@pytest.fixture
def client(settings: Settings, database: Database) -> Generator[TestClient, None, None]:
    """HTTP client against an app sharing the test database."""
    app = create_app(settings=settings, database=database)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_user(database: Database, auth_service: LocalAuthService, settings: Settings):
    """Register a user in its own committed transaction."""

    def _make_user(
        email: str = "alice@example.com",
        username: str = "alice",
        password: str = PASSWORD,
        referral_code: str | None = None,
    ) -> User:
        with database.session() as session:
            return ReferralService(session, auth_service, settings).register_user(
                username=username,
                email=email,
                password=password,
                referral_code=referral_code,
            )

    return _make_user


@pytest.fixture
def make_admin(database: Database, auth_service: LocalAuthService):
    def _make_admin(email: str = "root@example.com", password: str = PASSWORD) -> Admin:
        with database.session() as session:
            return auth_service.register_admin(session, "root", email, password)

    return _make_admin


@pytest.fixture
def user_token(auth_service: LocalAuthService):
    def _token(user_id: int) -> str:
        return auth_service.create_access_token(user_id, role=ROLE_USER)

    return _token


@pytest.fixture
def admin_token(auth_service: LocalAuthService):
    def _token(admin_id: int) -> str:
        return auth_service.create_access_token(admin_id, role=ROLE_ADMIN)

    return _token
