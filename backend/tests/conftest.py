"""
Shared pytest fixtures.

The test session runs against an in-memory SQLite database with cache,
email and rate limiting switched off. Every test starts from a fresh schema.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["PORTAL_API_KEY"] = "test-portal-key"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from med1 import models  # noqa: E402,F401
from med1.core.database import Base, SessionLocal, engine, utcnow  # noqa: E402
from med1.core.security import create_access_token, hash_password  # noqa: E402
from med1.main import app  # noqa: E402
from med1.models.lead import Lead, LeadStatus  # noqa: E402
from med1.models.page import Page  # noqa: E402
from med1.models.patient import Patient  # noqa: E402
from med1.models.user import User  # noqa: E402


DOCTOR_PASSWORD = "correct-horse-battery"
PORTAL_API_KEY = "test-portal-key"


@pytest.fixture(autouse=True)
def fresh_schema():
    """Drop and recreate every table before each test."""
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        Base.metadata.create_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()
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


def make_doctor(db, email: str, slug: str, name: str = "Dra. Ana Souza", verified: bool = True) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(DOCTOR_PASSWORD),
        slug=slug,
        specialty="Cardiologia",
        email_verified_at=utcnow() if verified else None,
    )
    db.add(user)
    db.commit()
    return user


def headers_for(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def doctor(db) -> User:
    return make_doctor(db, "ana@clinica.com.br", "dra-ana")


@pytest.fixture
def auth_headers(doctor) -> dict:
    return headers_for(doctor)


@pytest.fixture
def other_doctor(db) -> User:
    return make_doctor(db, "bruno@clinica.com.br", "dr-bruno", name="Dr. Bruno Lima")


@pytest.fixture
def other_headers(other_doctor) -> dict:
    return headers_for(other_doctor)


@pytest.fixture
def portal_headers() -> dict:
    return {"X-API-Key": PORTAL_API_KEY}


@pytest.fixture
def lead(db, doctor) -> Lead:
    row = Lead(user_id=doctor.id, name="Carlos Mendes", phone="11999990000", status=LeadStatus.NOVO.value)
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def patient(db, doctor) -> Patient:
    lead_row = Lead(user_id=doctor.id, name="Maria Silva", phone="11988887777", email="maria@example.com")
    db.add(lead_row)
    db.flush()
    row = Patient(
        user_id=doctor.id,
        lead_id=lead_row.id,
        name="Maria Silva",
        email="maria@example.com",
        phone="11988887777",
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def page(db, doctor) -> Page:
    row = Page(user_id=doctor.id, title="Consultório", slug="consultorio")
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def portal_patient(db, patient) -> Patient:
    """The ``patient`` fixture with portal access and a known password."""
    patient.password_hash = hash_password("patient-pass-123")
    patient.has_portal_access = True
    db.commit()
    return patient
