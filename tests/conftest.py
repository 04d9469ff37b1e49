"""
Shared fixtures for engine and tournament tests.
"""
import random

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models import Participant


class FixedRandom(random.Random):
    """Random source whose random() replays a fixed list of rolls (last one repeats)"""

    def __init__(self, rolls):
        super().__init__(0)
        self.rolls = list(rolls)
        self.calls = 0

    def random(self):
        index = min(self.calls, len(self.rolls) - 1)
        self.calls += 1
        return self.rolls[index]


def make_participant(email: str, name: str = None, is_cpu: bool = False, **overrides) -> Participant:
    """Detached participant with a balanced build"""
    fields = {
        "email": email,
        "player_name": name or email.split("@")[0],
        "display_name": name or email.split("@")[0],
        "wrestler_id": None,
        "height": 5,
        "weight": 5,
        "speed": 5,
        "technique": 5,
        "signature_move": "kotenage",  # Not a finish choice, so no signature bonus by default
        "is_cpu": is_cpu,
        "wins": 0,
        "losses": 0,
        "tournament_wins": 0,
    }
    fields.update(overrides)
    return Participant(**fields)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def east():
    return make_participant("east@test.com", "Takanohana")


@pytest.fixture
def west():
    return make_participant("west@test.com", "Akebono")


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(engine)
    yield session
    session.close()
    engine.dispose()
