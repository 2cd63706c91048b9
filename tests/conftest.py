# tests/conftest.py
"""
Shared fixtures: an in-memory SQLite database, fixed ids for the usual
participants, and helpers to mint access tokens like the auth provider does.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BACKGROUND_TASKS_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["DEFAULT_TIMEZONE"] = "Europe/Madrid"

import uuid
from datetime import datetime, time, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.config.database import SessionLocal, engine, get_db
from app.config.settings import get_settings
from app.models import AvailabilityRule, Base, ClassSession, SessionStatus, Subscription
from app.schemas.identity import Actor, Role

UTC = timezone.utc

# Monday 4 March 2030, 08:00 UTC (09:00 in Madrid, before the DST switch)
NOW = datetime(2030, 3, 4, 8, 0, tzinfo=UTC)

TEACHER_ID = uuid.UUID("11111111-1111-4111-8111-111111111111")
OTHER_TEACHER_ID = uuid.UUID("22222222-2222-4222-8222-222222222222")
STUDENT_ID = uuid.UUID("33333333-3333-4333-8333-333333333333")
OTHER_STUDENT_ID = uuid.UUID("44444444-4444-4444-8444-444444444444")
ADMIN_ID = uuid.UUID("55555555-5555-4555-8555-555555555555")


@pytest.fixture
def db():
    """Fresh schema per test on the shared in-memory connection."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def teacher():
    return Actor(user_id=TEACHER_ID, role=Role.TEACHER)


@pytest.fixture
def other_teacher():
    return Actor(user_id=OTHER_TEACHER_ID, role=Role.TEACHER)


@pytest.fixture
def student():
    return Actor(user_id=STUDENT_ID, role=Role.STUDENT)


@pytest.fixture
def other_student():
    return Actor(user_id=OTHER_STUDENT_ID, role=Role.STUDENT)


@pytest.fixture
def admin():
    return Actor(user_id=ADMIN_ID, role=Role.ADMIN)


@pytest.fixture
def subscription(db):
    """Active plan with ten classes for the default student."""
    sub = Subscription(
        student_id=STUDENT_ID,
        status="active",
        sessions_total=10,
        sessions_used=0,
        ends_at=NOW + timedelta(days=120),
        created_at=NOW - timedelta(days=1),
    )
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return sub


@pytest.fixture
def monday_morning(db):
    """Teacher open Mondays 09:00-12:00 Madrid time."""
    rule = AvailabilityRule(
        teacher_id=TEACHER_ID,
        day_of_week=1,
        start_time=time(9, 0),
        end_time=time(12, 0),
        is_active=True,
    )
    db.add(rule)
    db.commit()
    return rule


def add_session(db, scheduled_at, duration_minutes=60, teacher_id=TEACHER_ID, student_id=STUDENT_ID,
                status=SessionStatus.SCHEDULED, meet_link=None, subscription_id=None):
    """Insert a session directly, bypassing booking rules."""
    session = ClassSession(
        teacher_id=teacher_id,
        student_id=student_id,
        subscription_id=subscription_id,
        scheduled_at=scheduled_at,
        duration_minutes=duration_minutes,
        ends_at=scheduled_at + timedelta(minutes=duration_minutes),
        status=status.value,
        meet_link=meet_link,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def make_token(user_id, role=None, audience="authenticated", expires_in=timedelta(hours=1)):
    claims = {
        "sub": str(user_id),
        "exp": datetime.now(UTC) + expires_in,
        "aud": audience,
    }
    if role is not None:
        claims["app_metadata"] = {"role": role}
    return jwt.encode(claims, get_settings().JWT_SECRET_KEY, algorithm=get_settings().JWT_ALGORITHM)


def auth_headers(user_id, role=None):
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def client(db):
    """API client sharing the test database session."""
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
