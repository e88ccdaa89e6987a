import os
import sys
import random
from datetime import datetime, timedelta
import pytest
import pytz

# Ensure the project root is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from database.session import DatabaseSession
from database.models import User
from game.engine import GameEngine
from game.help import HelpResolver
from helpers import make_question


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=pytz.UTC)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def db():
    database = DatabaseSession('sqlite://', echo=False)
    database.create_tables()
    yield database
    database.drop_tables()
    database.dispose()


@pytest.fixture()
def questions(db):
    """Two questions for every level."""
    with db.get_session() as session:
        for level in range(15):
            for n in range(2):
                session.add(make_question(level, n))


@pytest.fixture()
def user_id(db):
    with db.get_session() as session:
        user = User(telegram_id=1001, username='player', full_name='Умник', balance=0)
        session.add(user)
        session.flush()
        return user.id


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def engine(db, clock):
    rng = random.Random(42)
    return GameEngine(
        db=db,
        clock=clock,
        rng=rng,
        help_resolver=HelpResolver(rng, friend_accuracy=0.8),
        retry_attempts=2,
        retry_delay=0,
    )


@pytest.fixture()
def game_id(engine, questions, user_id):
    return engine.create_game_for_user(user_id)
