import os

# Must be set before the application modules read their settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from physiocenter.main import app
from physiocenter.core.database import get_db, get_redis, Base
from physiocenter.core.security import UserRole, get_password_hash
from physiocenter.models.user import User
from physiocenter.models.patient import Patient
from physiocenter.models.kine import Kine
from physiocenter.models.exercise import Exercise, ExerciseDifficulty, ExerciseIcon
from physiocenter.models.treatment_plan import TreatmentPlan, PlanExercise
from physiocenter.services.email_service import EmailService, get_email_service

TEST_PASSWORD = "TestPassword123!"

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture
def redis_mock():
    """Redis stand-in that never reports a previous request."""
    client = MagicMock()
    client.get.return_value = None
    app.dependency_overrides[get_redis] = lambda: client
    yield client
    app.dependency_overrides.pop(get_redis, None)

@pytest.fixture
def mailer():
    mock = MagicMock(spec=EmailService)
    for method in ("send_email", "send_contact_message", "send_password_reset", "send_account_setup"):
        getattr(mock, method).return_value = True
    app.dependency_overrides[get_email_service] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_email_service, None)

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture
def client(test_db, redis_mock, mailer):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

def create_user(db, email, role, first_name="Test", last_name="User", password=TEST_PASSWORD):
    user = User(
        email=email,
        password_hash=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    if role == UserRole.PATIENT:
        user.patient = Patient(gender="F", phone_number="0600000000")
    elif role == UserRole.KINE:
        user.kine = Kine(specialty="Sport", rpps_number="10001234567")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def login_headers(client, email, password=TEST_PASSWORD):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}

@pytest.fixture
def admin_headers(client, db_session):
    create_user(db_session, "admin@physiocenter.fr", UserRole.ADMIN, "Ada", "Admin")
    return login_headers(client, "admin@physiocenter.fr")

@pytest.fixture
def kine(db_session):
    return create_user(db_session, "kine@physiocenter.fr", UserRole.KINE, "Karim", "Kine")

@pytest.fixture
def kine_headers(client, kine):
    return login_headers(client, kine.email)

@pytest.fixture
def patient(db_session):
    return create_user(db_session, "patient@physiocenter.fr", UserRole.PATIENT, "Paula", "Patient")

@pytest.fixture
def patient_headers(client, patient):
    return login_headers(client, patient.email)

@pytest.fixture
def exercises(db_session):
    catalog = [
        Exercise(title="Squat partiel", description="Flexion des genoux", duration="3 x 10",
                 difficulty=ExerciseDifficulty.MODERATE, icon=ExerciseIcon.TARGET),
        Exercise(title="Rotation d'épaule", description="Mobilité de l'épaule", duration="5 min",
                 difficulty=ExerciseDifficulty.EASY, icon=ExerciseIcon.REFRESH, tip="Gardez le dos droit"),
        Exercise(title="Fente avant", description="Renforcement quadriceps", duration="2 x 12",
                 difficulty=ExerciseDifficulty.HARD, icon=ExerciseIcon.ZAP),
    ]
    db_session.add_all(catalog)
    db_session.commit()
    for exercise in catalog:
        db_session.refresh(exercise)
    return catalog

@pytest.fixture
def active_plan(db_session, kine, patient, exercises):
    """An in-progress plan assigning the first two catalog exercises."""
    plan = TreatmentPlan(
        patient_id=patient.patient.id,
        kine_id=kine.kine.id,
        objectives=[{"title": "Genou", "description": "Retrouver la flexion", "progress": 0,
                     "status": "En cours", "icon": "trending", "variant": None}],
        session_count=10,
    )
    plan.exercises = [
        PlanExercise(exercise_id=exercises[0].id, position=0, instructions="Sans douleur"),
        PlanExercise(exercise_id=exercises[1].id, position=1),
    ]
    patient.patient.kine_id = kine.kine.id
    db_session.add(plan)
    db_session.commit()
    db_session.refresh(plan)
    return plan
