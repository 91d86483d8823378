"""
Shared fixtures: an in-memory database, a small shop, and an API client.
"""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from barbershop import models  # noqa: F401  registers tables
from barbershop.auth import create_access_token
from barbershop.booking import BookingService
from barbershop.core import parse_hhmm
from barbershop.db import get_session
from barbershop.deps import get_notifier
from barbershop.main import app
from barbershop.models import Barber, Service, User
from barbershop.permissions import Actor

FUTURE = date.today() + timedelta(days=7)


class RecordingSender:
    def __init__(self):
        self.sent = []

    def send(self, recipient, subject, body_text, body_html=None):
        self.sent.append((recipient, subject))
        return True


class FailingSender:
    def send(self, recipient, subject, body_text, body_html=None):
        raise ConnectionError("SMTP down")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def make_user(session, name, role="client"):
    user = User(
        name=name,
        email=f"{name.lower()}@example.com",
        password_hash="not-a-real-hash",
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_barber(session, name="Bob", start="09:00", end="18:00"):
    user = make_user(session, name, role="barber")
    barber = Barber(
        user_id=user.id,
        work_start_minute=parse_hhmm(start),
        work_end_minute=parse_hhmm(end),
    )
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


def make_service(session, name="Haircut", duration=30, price=20.0):
    service = Service(name=name, duration_minutes=duration, price=price)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


def actor(user):
    return Actor(user_id=user.id, role=user.role)


@pytest.fixture
def shop(session):
    """One barber, two clients, an admin and two services."""
    barber = make_barber(session)
    return {
        "barber": barber,
        "barber_user": session.get(User, barber.user_id),
        "alice": make_user(session, "Alice"),
        "carol": make_user(session, "Carol"),
        "admin": make_user(session, "Admin", role="admin"),
        "haircut": make_service(session, "Haircut", 30, 20.0),
        "cut_and_beard": make_service(session, "Cut and beard", 45, 30.0),
    }


@pytest.fixture
def book(session):
    """Book through the real service; returns the appointment."""
    def _book(client, barber, service, start="10:00", day=FUTURE, notifier=None):
        return BookingService(session, notifier).create(
            actor(client),
            barber_id=barber.id,
            service_id=service.id,
            day=day,
            start_minute=parse_hhmm(start),
        )
    return _book


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def api(session, sender):
    def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_notifier] = lambda: sender
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
