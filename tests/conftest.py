"""
Fixtures compartidas: base de datos SQLite en memoria y cliente de la API
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-bp-manager")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from fastapi.testclient import TestClient

from bp_manager.core.database import SessionLocal, create_tables, drop_tables
from bp_manager.core.security import create_access_token
from bp_manager.main import app
from bp_manager.models.user import UserRole
from bp_manager.services.auth_service import AuthService

DEFAULT_PASSWORD = "Secreta123"


@pytest.fixture
def db_session():
    """Esquema limpio por test"""
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_tables()


@pytest.fixture
def client(db_session):
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    """Crear usuarios directamente en la base de datos"""
    counter = {"n": 0}

    def _make_user(role=UserRole.PATIENT, timezone=None, created_by_id=None, email=None):
        counter["n"] += 1
        return AuthService(db_session).create_user(
            email=email or f"user{counter['n']}@example.com",
            password=DEFAULT_PASSWORD,
            first_name="Test",
            last_name=f"User{counter['n']}",
            role=role,
            timezone=timezone,
            created_by_id=created_by_id
        )

    return _make_user


def auth_headers(user) -> dict:
    token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Cabeceras de autorización para cualquier usuario"""
    return auth_headers


@pytest.fixture
def patient(make_user):
    return make_user()


@pytest.fixture
def patient_headers(patient):
    return auth_headers(patient)


@pytest.fixture
def provider(make_user):
    return make_user(role=UserRole.PROVIDER)


@pytest.fixture
def provider_headers(provider):
    return auth_headers(provider)


@pytest.fixture
def medication_payload():
    """Datos mínimos de un medicamento"""
    def _payload(frequency="twice_daily", **overrides):
        data = {
            "name": "Losartán",
            "dosage_amount": 50,
            "dosage_unit": "mg",
            "frequency": frequency,
            "start_date": "2024-01-01",
        }
        data.update(overrides)
        return data

    return _payload
