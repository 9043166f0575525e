"""
Shared test fixtures — SQLite database, test client, auth helpers.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set JWT_SECRET before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from roofcrm import models
from roofcrm.auth import create_access_token
from roofcrm.database import Base, get_db
from roofcrm.main import app
from roofcrm.schemas import RoofMeasurement


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def auth_token():
    """Access token as the CRM auth service would issue it."""
    return create_access_token(42)


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def measurement():
    """2500 sq ft roof with measured edges."""
    return RoofMeasurement(
        total_area_sqft=2500,
        predominant_pitch_rise=6,
        eave_length_ft=180,
        rake_length_ft=60,
        ridge_length_ft=40,
        valley_length_ft=10,
        source_quality="high",
    )


@pytest.fixture
def job(db, measurement):
    """A job with a stored measurement."""
    row = models.Job(
        customer_name="Dana Whitfield",
        address="1418 Cedar Ridge Dr, Plano, TX 75075",
        roof_area_sqft=measurement.total_area_sqft,
        predominant_pitch_rise=measurement.predominant_pitch_rise,
        eave_length_ft=measurement.eave_length_ft,
        rake_length_ft=measurement.rake_length_ft,
        ridge_length_ft=measurement.ridge_length_ft,
        valley_length_ft=measurement.valley_length_ft,
        measurement_source="high",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def session_factory():
    """Session factory for tests that need one session per thread."""
    return TestingSessionLocal
