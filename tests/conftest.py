"""
Pytest configuration and fixtures
"""
import itertools
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Ensure project root is on sys.path for imports in tests
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Settings are read at import time, so the environment is prepared first
_test_dir = tempfile.mkdtemp(prefix="taskmanager-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_dir}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["UPLOAD_DIR"] = os.path.join(_test_dir, "uploads")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RESEND_API_KEY"] = ""

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

import app.models  # noqa: E402,F401
from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.models.department import Department  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
from app.services.email_service import email_service  # noqa: E402
from app.services.file_storage import FileStorageService, get_file_storage  # noqa: E402
from app.utils.security import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "password123"
_password_hash = hash_password(TEST_PASSWORD)
_email_counter = itertools.count(1)


@pytest.fixture(scope="function")
def db() -> Session:
    """Create a database session on a clean schema"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def storage(tmp_path) -> FileStorageService:
    return FileStorageService(upload_dir=str(tmp_path / "uploads"), secret_key="storage-secret")


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling the provider"""
    outbox = []

    async def fake_send_email(to, subject, text, html=None):
        outbox.append({"to": to, "subject": subject, "text": text, "html": html})
        return {"id": f"test-{len(outbox)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return outbox


@pytest.fixture(scope="function")
def client(db: Session, storage: FileStorageService):
    """Create test client with database and storage overrides"""
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_department(db: Session):
    def _make(name: str = "Engineering", parent: Department = None, manager: User = None) -> Department:
        department = Department(
            name=name,
            parent_id=parent.id if parent else None,
            manager_id=manager.id if manager else None,
        )
        db.add(department)
        db.commit()
        db.refresh(department)
        return department

    return _make


@pytest.fixture
def make_user(db: Session, make_department):
    def _make(
        name: str = "Test User",
        role: UserRole = UserRole.STAFF,
        department: Department = None,
        is_hr_admin: bool = False,
        is_active: bool = True,
        email: str = None,
    ) -> User:
        if department is None:
            department = make_department()
        user = User(
            name=name,
            email=email or f"user{next(_email_counter)}@example.com",
            hashed_password=_password_hash,
            role=role,
            department_id=department.id,
            is_hr_admin=is_hr_admin,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token(data={"sub": user.email})
        return {"Authorization": f"Bearer {token}"}

    return _headers
