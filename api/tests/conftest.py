import base64
import os
import tempfile

import pytest

# Settings are read at import time, so the environment comes first
_TMP_DIR = tempfile.mkdtemp(prefix="cryptolab-tests-")
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOADS_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "admin-password"

from fastapi.testclient import TestClient  # noqa: E402

from cryptolab.auth.jwt_utils import create_access_token  # noqa: E402
from cryptolab.config.database import Base, SessionLocal, engine  # noqa: E402
from cryptolab.main import app  # noqa: E402
from cryptolab.models.user import User, hash_password  # noqa: E402
from cryptolab.routers import auth as auth_router  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(range(64))
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    auth_router.login_attempts.clear()
    yield


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
def make_user(db):
    def _make_user(role="regular", email=None, password="secret-pass", is_active=True):
        user = User(
            name=role.capitalize(),
            surname="Tester",
            email=email or f"{role}@example.com",
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def headers_for():
    def _headers_for(user):
        token = create_access_token(str(user.id), extra_claims={"email": user.email, "role": user.role})
        return {"x-auth-token": token}
    return _headers_for


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)


@pytest.fixture
def authorized_headers(make_user, headers_for):
    return headers_for(make_user("authorized"))


@pytest.fixture
def regular_headers(make_user, headers_for):
    return headers_for(make_user("regular"))


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def png_data_uri():
    return PNG_DATA_URI


@pytest.fixture
def uploads_dir():
    return os.environ["UPLOADS_DIR"]
