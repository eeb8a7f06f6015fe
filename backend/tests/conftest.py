import os
import sys
import pytest

# Ensure the backend root (containing the `arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arena import create_app, db, socketio


class FakeClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, start=1000.0):
        self.now = float(start)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOBBY_DURATION_SEC = 60
    COUNTDOWN_DURATION_SEC = 10
    ACTIVE_DURATION_SEC = 300
    END_SCREEN_DURATION_SEC = 15
    MIN_PLAYERS = 2
    MAX_PLAYERS = 8
    TICK_INTERVAL_SEC = 1.0
    TICK_HEARTBEAT_SEC = 0
    JOIN_MESSAGE = '{player} joined ({cur}/{max})'
    LEAVE_MESSAGE = '{player} left ({cur}/{max})'


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig)
    application.config['PHASE_CLOCK'] = clock
    with application.app_context():
        # Ensure models are imported so tables are created
        import arena.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture(autouse=True)
def clear_rooms():
    yield
    from arena.services.arenas import rooms
    with rooms._rooms_lock:
        rooms._rooms.clear()


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
