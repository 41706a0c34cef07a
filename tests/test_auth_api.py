"""
Tests for login, logout, session lifetime and password changes
"""
from unittest.mock import patch

from constants import SESSION_COOKIE_NAME, SESSION_TTL_SECONDS
from exceptions import StorageException
from json_store import read_json, write_json

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME


class TestLogin:
    """Tests for POST /api/auth/login"""

    def test_login_success(self, client, login):
        response = login()

        assert response.status_code == 200
        assert response.get_json() == {
            'success': True,
            'message': 'Login successful',
            'username': ADMIN_USERNAME,
        }

    def test_login_authenticates_session(self, client, login):
        login()

        assert client.get('/api/auth/check').get_json() == {'authenticated': True, 'username': ADMIN_USERNAME}

    def test_wrong_password_and_unknown_user_look_the_same(self, client, login):
        wrong_password = login(password='not-the-password')
        unknown_user = login(username='nobody', password=ADMIN_PASSWORD)

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.get_json() == unknown_user.get_json()
        assert wrong_password.get_json()['error'] == 'Invalid credentials'

    def test_failed_login_stays_anonymous(self, client, login):
        login(password='not-the-password')

        assert client.get('/api/auth/check').get_json() == {'authenticated': False}

    def test_missing_fields(self, client):
        response = client.post('/api/auth/login', json={'username': ADMIN_USERNAME})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Username and password required'

    def test_non_json_body(self, client):
        response = client.post('/api/auth/login', data='username=admin', content_type='text/plain')

        assert response.status_code == 400

    def test_login_records_last_login(self, client, login, services):
        login()

        assert 'lastLogin' in services.users.get(ADMIN_USERNAME)

    def test_cookie_is_opaque(self, client, login):
        login()

        cookie = client.get_cookie(SESSION_COOKIE_NAME)
        assert cookie is not None
        assert ADMIN_USERNAME not in cookie.value
        assert cookie.http_only

    def test_session_id_changes_at_login(self, client, login, app):
        client.post('/api/auth/login', json={'username': 'nobody', 'password': 'x'})
        login()
        first = client.get_cookie(SESSION_COOKIE_NAME).value

        login()

        assert client.get_cookie(SESSION_COOKIE_NAME).value != first
        assert len(app.session_interface.store) == 1


class TestCheckAndGate:
    """Tests for GET /api/auth/check and the login_required gate"""

    def test_anonymous_check(self, client):
        assert client.get('/api/auth/check').get_json() == {'authenticated': False}

    def test_gate_rejects_anonymous(self, client):
        response = client.post('/api/speakers', json={'name': 'Ada'})

        assert response.status_code == 401
        assert response.get_json() == {'error': 'Unauthorized - Please login', 'code': 'UNAUTHORIZED'}

    def test_forged_cookie_is_anonymous(self, client):
        client.set_cookie(SESSION_COOKIE_NAME, 'forged-session-id')

        assert client.get('/api/auth/check').get_json() == {'authenticated': False}

    def test_deleted_user_loses_session(self, app, auth_client, services):
        services.users.create('editor', 'editor-password')
        editor = app.test_client()
        editor.post('/api/auth/login', json={'username': 'editor', 'password': 'editor-password'})

        auth_client.delete('/api/users/editor')

        assert editor.get('/api/auth/check').get_json() == {'authenticated': False}


class TestSessionLifetime:
    """Sessions end a fixed time after login"""

    def test_session_expires_after_ttl(self, auth_client, clock):
        clock.advance(SESSION_TTL_SECONDS + 1)

        assert auth_client.get('/api/auth/check').get_json() == {'authenticated': False}
        assert auth_client.post('/api/speakers', json={'name': 'Ada'}).status_code == 401

    def test_activity_does_not_extend_session(self, auth_client, clock):
        clock.advance(SESSION_TTL_SECONDS - 60)
        assert auth_client.get('/api/auth/check').get_json()['authenticated'] is True
        assert auth_client.post('/api/speakers', json={'name': 'Ada'}).status_code == 201

        clock.advance(120)

        assert auth_client.get('/api/auth/check').get_json() == {'authenticated': False}


class TestLogout:
    """Tests for POST /api/auth/logout"""

    def test_logout_ends_session(self, auth_client, app):
        response = auth_client.post('/api/auth/logout')

        assert response.status_code == 200
        assert response.get_json() == {'success': True, 'message': 'Logged out successfully'}
        assert auth_client.get('/api/auth/check').get_json() == {'authenticated': False}
        assert len(app.session_interface.store) == 0

    def test_logout_when_anonymous(self, client):
        assert client.post('/api/auth/logout').status_code == 200

    def test_logout_store_failure(self, auth_client, app):
        failure = StorageException('redis down', public_message='Logout failed')
        with patch.object(app.session_interface.store, 'destroy', side_effect=failure):
            response = auth_client.post('/api/auth/logout')

        assert response.status_code == 500
        assert response.get_json()['error'] == 'Logout failed'


class TestChangePassword:
    """Tests for POST /api/auth/change-password"""

    def test_requires_login(self, client):
        response = client.post('/api/auth/change-password', json={'currentPassword': 'a', 'newPassword': 'b'})

        assert response.status_code == 401

    def test_missing_fields(self, auth_client):
        response = auth_client.post('/api/auth/change-password', json={'currentPassword': ADMIN_PASSWORD})

        assert response.status_code == 400

    def test_short_new_password(self, auth_client):
        response = auth_client.post(
            '/api/auth/change-password', json={'currentPassword': ADMIN_PASSWORD, 'newPassword': 'short'}
        )

        assert response.status_code == 400
        assert 'at least 8' in response.get_json()['error']

    def test_wrong_current_password(self, auth_client):
        response = auth_client.post(
            '/api/auth/change-password', json={'currentPassword': 'wrong-password', 'newPassword': 'new-password-1'}
        )

        assert response.status_code == 401
        assert response.get_json()['error'] == 'Current password is incorrect'

    def test_change_then_login_with_new_password(self, auth_client, login):
        response = auth_client.post(
            '/api/auth/change-password', json={'currentPassword': ADMIN_PASSWORD, 'newPassword': 'new-password-1'}
        )
        assert response.status_code == 200

        auth_client.post('/api/auth/logout')

        assert login().status_code == 401
        assert login(password='new-password-1').status_code == 200

    def test_non_string_current_password(self, auth_client):
        response = auth_client.post(
            '/api/auth/change-password', json={'currentPassword': 12345678, 'newPassword': 'new-password-1'}
        )

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'


class TestUnreadableStoredHash:
    """A users file holding a hash werkzeug cannot parse"""

    BCRYPT_HASH = '$2b$10$rVK5hS0m1nNq6qQm8yJ0uO3xV1H0n5wz0cQe7m3H6J9xZ8s4p2kGu'

    def test_login_matches_unknown_user_response(self, client, services):
        records = read_json(services.users.path)
        records[0]['passwordHash'] = self.BCRYPT_HASH
        write_json(services.users.path, records)

        known = client.post('/api/auth/login', json={'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD})
        unknown = client.post('/api/auth/login', json={'username': 'nobody', 'password': ADMIN_PASSWORD})

        assert known.status_code == unknown.status_code == 401
        assert known.get_json() == unknown.get_json()
