import os
import sys
import pytest

# Ensure the backend root (containing the `lynxchat` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from lynxchat import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/'
    ROOM_HISTORY_LIMIT = 50
    MESSAGE_MAX_LENGTH = 2000
    MATCH_CLEANUP_DELAY_SEC = 1.0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import lynxchat.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_user(flask_app):
    from lynxchat.models import User

    def _make(username, password='password'):
        user = User(username=username, email=f'{username}@example.com')
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def connect(flask_app, make_user):
    """Log a fresh user in over HTTP and open a Socket.IO connection for them."""
    opened = []

    def _connect(username, create=True):
        if create:
            make_user(username)
        http = flask_app.test_client()
        res = http.post('/auth/login', json={'username': username, 'password': 'password'})
        assert res.status_code == 200
        sio_client = socketio.test_client(flask_app, flask_test_client=http)
        assert sio_client.is_connected()
        sio_client.get_received()  # flush
        opened.append(sio_client)
        return sio_client

    yield _connect
    for sio_client in opened:
        if sio_client.is_connected():
            sio_client.disconnect()


def received(sio_client, name):
    """Payloads of every ``name`` event the client has received since the last call."""
    return [pkt['args'][0] for pkt in sio_client.get_received() if pkt['name'] == name]
