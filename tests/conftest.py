import itertools
import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite://"

from patient_records.main import app
from patient_records.core.config import settings
from patient_records.core.database import get_db, Base
from patient_records.core.security import UserRole, AdminRole
from patient_records.models import User, Patient, Admin, AdminPermission

# Single shared in-memory database for the app and the fixtures
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def make_user(db_session):
    """Insert a user; patients by default."""
    counter = itertools.count(1)

    def _make_user(name=None, role=UserRole.PATIENT, deleted=False, **fields):
        n = next(counter)
        fields.setdefault("email", f"user{n}@example.com")
        user = User(
            name=name or f"Test Patient {n}",
            role=role,
            deleted_at=datetime.utcnow() if deleted else None,
            **fields
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user

@pytest.fixture
def make_patient(db_session):
    def _make_patient(user, **fields):
        patient = Patient(user_id=user.id, **fields)
        db_session.add(patient)
        db_session.commit()
        db_session.refresh(patient)
        return patient

    return _make_patient

@pytest.fixture
def make_admin(db_session):
    """Insert an admin, optionally granting a level on the patients resource."""
    counter = itertools.count(1)

    def _make_admin(role=AdminRole.ADMIN, level=None, is_active=True):
        n = next(counter)
        admin = Admin(
            name=f"Staff {n}",
            email=f"staff{n}@clinic.example.com",
            role=role,
            is_active=is_active
        )
        if level is not None:
            admin.permissions.append(
                AdminPermission(resource=settings.PATIENT_RESOURCE, level=level)
            )
        db_session.add(admin)
        db_session.commit()
        db_session.refresh(admin)
        return admin

    return _make_admin

