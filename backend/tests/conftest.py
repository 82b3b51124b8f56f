import os
import random
import sys
import pytest
from fakeredis import FakeRedis

# Ensure the backend root (containing the `wrong_answers` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wrong_answers import build_services, create_app, db
from wrong_answers.services.games.clock import Clock
from wrong_answers.store import redis_client, set_redis_client

# 2024-01-01T12:00:00Z
START_MS = 1704110400000
HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    REDIS_URL = 'redis://localhost:6379/15'
    SUBMISSION_DURATION_SEC = 12 * 60 * 60
    VOTING_DURATION_SEC = 12 * 60 * 60
    LEADERBOARD_LIMIT = 10
    GAME_WRITE_RETRIES = 5
    ALLOWED_ORIGINS = []


class FakeClock(Clock):
    """Clock that only moves when a test says so."""

    def __init__(self, now_ms=START_MS):
        self.now = now_ms

    def now_ms(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture()
def redis():
    original = redis_client.client
    client = FakeRedis(decode_responses=True)
    set_redis_client(client)
    try:
        yield client
    finally:
        client.flushall()
        if original is not None:
            set_redis_client(original)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(redis, clock):
    application = create_app(TestConfig)
    application.extensions['wrong_answers'] = build_services(application, clock=clock, rng=random.Random(1234))
    # no app context is held during the test; each request pushes its own
    with application.app_context():
        # Ensure models are imported so tables are created
        import wrong_answers.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def services(flask_app):
    return flask_app.extensions['wrong_answers']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def login(flask_app):
    """Return a factory that registers `username` and yields a logged-in test client."""
    def _login(username, password='password'):
        c = flask_app.test_client()
        res = c.post('/users/add', json={'username': username, 'password': password})
        assert res.status_code in (201, 400)
        res = c.post('/login', json={'username': username, 'password': password})
        assert res.status_code == 200
        c.user = res.get_json()['user']
        return c
    return _login
