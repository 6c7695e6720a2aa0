import os
import time
import uuid

# Configure before the application reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from hellokeys.database import Base, SessionLocal, engine  # noqa: E402
from hellokeys.main import app  # noqa: E402
from hellokeys.models import Profile  # noqa: E402

JWT_SECRET = "test-jwt-secret"


def make_token(user_id: str, email: str, role: str = "user", expires_in: int = 3600) -> str:
    claims = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
        "user_metadata": {"first_name": "Camille", "last_name": "Martin", "role": role},
    }
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def owner_id():
    return str(uuid.uuid4())


@pytest.fixture
def admin_id():
    return str(uuid.uuid4())


@pytest.fixture
def owner_headers(owner_id):
    return {"Authorization": f"Bearer {make_token(owner_id, 'owner@example.com')}"}


@pytest.fixture
def admin_headers(admin_id):
    return {"Authorization": f"Bearer {make_token(admin_id, 'admin@hellokeys.fr', role='admin')}"}


@pytest.fixture
def owner(db, owner_id):
    profile = Profile(id=owner_id, email="owner@example.com", first_name="Camille", role="user")
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile
