"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from trainer_portal import auth, models
from trainer_portal.config import Settings
from trainer_portal.errors import TransientDeliveryError
from trainer_portal.main import create_app

NOW = datetime(2024, 1, 20, 12, 0, 0)


class FakeMailer:
    """Records every message; addresses in `failing` raise like a dead provider."""

    def __init__(self, failing=()):
        self.sent = []
        self.failing = set(failing)

    def send(self, to_email, subject, body):
        if to_email in self.failing:
            raise TransientDeliveryError(f"provider rejected {to_email}")
        self.sent.append((to_email, subject, body))


class FixedClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret",
        admin_notify_email="coach@example.com",
        app_base_url="https://portal.example.com",
    )


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def app(settings, mailer, clock):
    return create_app(settings, mailer=mailer, clock=clock)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def session_factory(app):
    return app.state.session_factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, email=None, first_name="Mario", is_admin=False, is_active=True):
        counter["n"] += 1
        user = models.User(
            username=username or f"user{counter['n']}",
            email=email,
            first_name=first_name,
            last_name="Rossi",
            hashed_password="not-a-real-hash",
            is_admin=is_admin,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def set_plan(db):
    def _set(user, updated_at):
        plan = db.query(models.TrainingPlan).filter_by(user_id=user.id).first()
        if plan is None:
            plan = models.TrainingPlan(user_id=user.id, original_name="scheda.pdf", uploaded_at=updated_at)
            db.add(plan)
        plan.updated_at = updated_at
        db.commit()
        return plan

    return _set


@pytest.fixture
def add_feedback(db):
    def _add(user, created_at, plan_version, email="mario@example.com"):
        fb = models.Feedback(
            user_id=user.id,
            first_name="Mario",
            last_name="Rossi",
            email=email,
            feedback_date=created_at.date(),
            training_satisfaction=8,
            motivation_level=7,
            nutrition_quality="buona",
            sleep_hours=7,
            recovery_improved=True,
            feels_supported=True,
            created_at=created_at,
            pdf_change_date=plan_version,
        )
        db.add(fb)
        db.commit()
        db.refresh(fb)
        return fb

    return _add


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        token = auth.create_access_token(
            settings, user_id=user.id, username=user.username, is_admin=user.is_admin
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def survey():
    return {
        "firstName": "Mario",
        "lastName": "Rossi",
        "email": "mario@example.com",
        "trainingSatisfaction": 8,
        "motivationLevel": 9,
        "difficulties": "Poco tempo il martedì",
        "nutritionQuality": "buona",
        "sleepHours": 7,
        "recoveryImproved": True,
        "feelsSupported": True,
        "supportImprovement": None,
    }
