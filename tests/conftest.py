from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from lockout_app import create_app
from lockout_app.config import TestingConfig
from lockout_app.extensions import db
from lockout_app.lockout import LockoutTracker
from lockout_app.models import User


class FakeClock:
    """Settable stand-in for time.time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return LockoutTracker(clock=clock)


@pytest.fixture
def app(tracker):
    app = create_app(TestingConfig, lockout_tracker=tracker)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded_user(app):
    user = User(email="alice@example.com")
    user.set_password("alicepass")
    db.session.add(user)
    db.session.commit()
    return {"id": user.id, "email": user.email, "password": "alicepass"}
