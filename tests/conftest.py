"""
Pytest fixtures and configuration for the CMS backend tests
"""
import os
import sys
import time

import pytest

# Add app directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'app')))

from constants import DEFAULT_SETTINGS  # noqa: E402
from settings import merge_settings  # noqa: E402

ADMIN_USERNAME = 'admin'
ADMIN_PASSWORD = 'admin-password-1'


class FakeClock:
    """Manually advanced time source, starting at the real current time"""

    def __init__(self, start=None):
        self.now = time.time() if start is None else start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Keep werkzeug hashing salted but cheap so the suite stays fast"""
    import repositories.user_repository as user_repository

    monkeypatch.setattr(user_repository, 'HASH_METHOD', 'pbkdf2:sha256:1000')


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / 'data')


@pytest.fixture
def uploads_dir(tmp_path):
    return str(tmp_path / 'uploads')


@pytest.fixture
def public_dir(tmp_path):
    path = tmp_path / 'public'
    path.mkdir()
    (path / 'admin.html').write_text('<html><body>admin</body></html>')
    return str(path)


@pytest.fixture
def app_settings(data_dir, uploads_dir, public_dir):
    return merge_settings(DEFAULT_SETTINGS, {
        'paths': {'data_dir': data_dir, 'uploads_dir': uploads_dir, 'public_dir': public_dir},
        'admin': {'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD},
        'session': {'secret': 'test-secret-key'},
        'ratelimit': {'enabled': False},
    })


@pytest.fixture
def app(app_settings, clock):
    from app import create_app

    _app = create_app(app_settings, clock=clock, config={'TESTING': True})
    return _app


@pytest.fixture
def services(app):
    from dependencies import EXTENSION_KEY

    return app.extensions[EXTENSION_KEY]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """POST /api/auth/login on the shared client, admin credentials by default"""
    def _login(username=ADMIN_USERNAME, password=ADMIN_PASSWORD):
        return client.post('/api/auth/login', json={'username': username, 'password': password})
    return _login


@pytest.fixture
def auth_client(client, login):
    """Test client holding an authenticated session for the seeded admin"""
    response = login()
    assert response.status_code == 200
    return client
