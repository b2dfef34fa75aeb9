import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure tests use an in-memory SQLite DB and JSON columns stay generic
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FORCE_GENERIC_JSON", "1")
os.environ.setdefault("APP_ENV", "development")

# Ensure the project root is on sys.path so `import telehealth` works when running
# pytest from the repository root.
ROOT_DIR = Path(__file__).resolve().parents[2]  # repository root
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from telehealth.app import app
from telehealth.auth.jwt import create_access_token, create_refresh_token, hash_password, token_claims
from telehealth.db.session import Base, get_db
from telehealth.models.enums import UserRole
from telehealth.models.user import User
from telehealth.utils.rate_limit import limiter


# In-memory SQLite shared across connections
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def create_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def _override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db

# Code paths that open their own session (the expiry sweeper) must use the test engine too
import telehealth.db.session as session_mod
session_mod.engine = engine
session_mod.SessionLocal = TestingSessionLocal
import telehealth.models as models_mod
models_mod.engine = engine


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    # ensure limiter state fresh each test
    limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user():
    """Insert a user straight into the DB and return (user_id, headers)."""
    counter = {"n": 0}

    def _make(role=UserRole.PATIENT, email=None, password="secret123", **fields):
        counter["n"] += 1
        role = UserRole(role)
        fields.setdefault("first_name", role.value.title())
        fields.setdefault("last_name", f"User{counter['n']}")
        if role == UserRole.DOCTOR:
            fields.setdefault("specialization", "General Practice")
        with TestingSessionLocal() as db:
            user = User(
                email=email or f"{role.value}{counter['n']}@example.com",
                hashed_password=hash_password(password),
                role=role,
                **fields,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            token = create_access_token(token_claims(user))
            return user.id, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def patient(make_user):
    return make_user(UserRole.PATIENT)


@pytest.fixture
def doctor(make_user):
    return make_user(UserRole.DOCTOR)


@pytest.fixture
def refresh_token_for():
    def _make(user_id):
        with TestingSessionLocal() as db:
            return create_refresh_token(token_claims(db.get(User, user_id)))
    return _make
