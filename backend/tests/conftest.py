"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("DB_URL", "sqlite://")

import datetime as dt
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from seatkeeper.core.deps import get_clock, get_db
from seatkeeper.core.security import get_password_hash
from seatkeeper.main import app
from seatkeeper.models.db import Base, Club, Table, User
from seatkeeper.services.seat_registry import SqlSeatRegistry

PASSWORD = "secret-pass"


class ManualClock:
    """Clock the tests move forward by hand."""

    def __init__(self, start: dt.datetime = dt.datetime(2026, 3, 14, 20, 0, 0)):
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += dt.timedelta(seconds=seconds)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


def _user(db, username: str, role: str) -> User:
    u = User(username=username, password_hash=get_password_hash(PASSWORD), role=role, is_active=True)
    db.add(u)
    db.flush()
    return u


@pytest.fixture
def seeded(db, clock) -> SimpleNamespace:
    """An admin, a club owner with one club, and a 9-seat table run by a dealer."""
    admin = _user(db, "admin", "admin")
    owner = _user(db, "owner", "club_owner")
    dealer = _user(db, "dealer", "dealer")
    other_dealer = _user(db, "other-dealer", "dealer")

    club = Club(name="River Club", owner_id=owner.id, is_active=True)
    db.add(club)
    db.flush()

    table = Table(name="Table 1", club_id=club.id, dealer_id=dealer.id, max_seats=9, is_active=True)
    db.add(table)
    db.flush()

    seats = SqlSeatRegistry(db, clock).create_seats_for_table(table.id, 9)
    db.commit()

    return SimpleNamespace(
        admin_id=admin.id,
        owner_id=owner.id,
        dealer_id=dealer.id,
        other_dealer_id=other_dealer.id,
        club_id=club.id,
        table_id=table.id,
        seats=seats,
    )


@pytest.fixture
def client(db, clock):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    def _login(username: str, password: str = PASSWORD) -> dict[str, str]:
        r = client.post("/api/auth/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login
