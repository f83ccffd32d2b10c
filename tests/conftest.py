import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import uuid
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.core.database import Base, get_db
from app.utils import deps as deps_utils
import main
from app.core.constants import RoleEnum
from app.core.security import get_password_hash
from app.crud.user import user as crud_user
from app.core.config import settings

test_db_url = settings.TEST_DATABASE_URL or "sqlite://"

@pytest.fixture(scope="function")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_engine(test_db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(scope="function")
def client(db_session):
    def _transactional_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = _transactional_db
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def user_factory(db_session):
    def _user_factory(email=None, password="testpass123", role=RoleEnum.USER, is_active=True):
        user_data = {
            "full_name": f"Test {role.value}",
            "email": email or f"{role.value}-{uuid.uuid4().hex[:8]}@test.com",
            "hashed_password": get_password_hash(password),
            "role": role,
            "is_active": is_active
        }
        return crud_user.create(db_session, obj_in=user_data)
    return _user_factory

def _login(client, email, password="testpass123"):
    response = client.post("/auth/login", json={"email": email, "password": password})
    body = response.json()
    token = body.get("data", {}).get("token", {}).get("access_token")
    assert token, f"Login failed or token missing: {body}"
    return token

@pytest.fixture
def token_for_role(client, user_factory):
    """Log in a fresh user of the given role; one user per role name per test."""
    tokens = {}

    def _create_token_for_role(role_name: str):
        if role_name in tokens:
            return tokens[role_name]
        role = RoleEnum.USER if role_name.startswith("user") else RoleEnum(role_name)
        user = user_factory(role=role)
        tokens[role_name] = _login(client, user.email)
        return tokens[role_name]

    return _create_token_for_role

@pytest.fixture
def headers_for(token_for_role):
    def _headers(role_name: str):
        return {"Authorization": f"Bearer {token_for_role(role_name)}"}
    return _headers

@pytest.fixture
def admin_headers(headers_for):
    return headers_for("admin")

@pytest.fixture
def user_headers(headers_for):
    return headers_for("user")
