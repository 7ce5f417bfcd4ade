import os
import sys
import pytest

# Ensure the backend root (containing the `app` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from app import create_app, socketio
from app.services.games.registry import get_registry
from app.services.games.scheduler import TimerHandle


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'
    CONTROLLER_DEBOUNCE_MS = 0
    TIMER_HEARTBEAT_SEC = 0
    SESSION_END_GRACE_SEC = 0.2


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class ManualScheduler:
    """Timers that only fire when the test advances the fake clock."""

    def __init__(self, clock):
        self.clock = clock
        self.pending = []

    def call_later(self, delay, callback, label=''):
        handle = TimerHandle(label)
        self.pending.append((self.clock.now + delay, handle, callback))
        return handle

    def advance(self, seconds):
        self.clock.now += seconds
        due = [p for p in self.pending if p[0] <= self.clock.now]
        self.pending = [p for p in self.pending if p[0] > self.clock.now]
        for _, handle, callback in sorted(due, key=lambda p: p[0]):
            if not handle.cancelled:
                handle.fired = True
                callback()

    @property
    def live(self):
        return [h for _, h, _ in self.pending if not h.cancelled]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def timers(clock):
    return ManualScheduler(clock)


@pytest.fixture()
def flask_app(clock, timers):
    application = create_app(TestConfig)
    with application.app_context():
        # Deterministic timers for request-driven tests
        registry = get_registry()
        registry.scheduler = timers
        registry.clock = clock
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
