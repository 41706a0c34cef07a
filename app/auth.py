from flask import Blueprint, current_app, session
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager, current_user, login_required, login_user, logout_user

from api_responses import ErrorCode, error_response, handle_api_errors, request_fields, success_response
from constants import DEFAULT_ADMIN_USERNAME, LOGIN_RATE_LIMIT
from dependencies import EXTENSION_KEY, get_user_repository
from exceptions import StorageException
from models.user import User
import structlog

logger = structlog.get_logger("main")

INVALID_CREDENTIALS = "Invalid credentials"

auth_blueprint = Blueprint("auth", __name__, url_prefix="/api/auth")

login_manager = LoginManager()
limiter = Limiter(key_func=get_remote_address, default_limits=[])


@login_manager.user_loader
def load_user(username):
    """A session only stays authenticated while its user still exists"""
    record = get_user_repository().get(username)
    if record is None:
        return None
    return User.from_record(record)


@login_manager.unauthorized_handler
def unauthorized_json():
    return error_response(ErrorCode.UNAUTHORIZED, message="Unauthorized - Please login", status_code=401)


def init_users(app, admin_settings):
    """
    Create users.json with the first admin account when it does not exist yet.
    Credentials come from ADMIN_USERNAME plus ADMIN_PASSWORD or ADMIN_PASSWORD_HASH.
    """
    users = app.extensions[EXTENSION_KEY].users
    username = admin_settings.get("username") or DEFAULT_ADMIN_USERNAME
    users.seed_default_admin(
        username,
        password=admin_settings.get("password"),
        password_hash=admin_settings.get("password_hash"),
    )


@auth_blueprint.route("/login", methods=["POST"])
@limiter.limit(LOGIN_RATE_LIMIT)
@handle_api_errors
def login():
    data = request_fields()
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return error_response(ErrorCode.VALIDATION_ERROR, message="Username and password required")

    users = get_user_repository()
    if not users.verify(username, password):
        # same response whether the user is unknown or the password is wrong
        logger.warning(f"Incorrect login for user {username}")
        return error_response(ErrorCode.UNAUTHORIZED, message=INVALID_CREDENTIALS, status_code=401)

    current_app.session_interface.regenerate(session._get_current_object())
    login_user(User.from_record(users.get(username)))
    users.record_login(username)

    logger.info(f"Successful login for user {username}")
    return success_response(message="Login successful", username=username)


@auth_blueprint.route("/logout", methods=["POST"])
def logout():
    username = current_user.username if current_user.is_authenticated else None
    logout_user()
    try:
        current_app.session_interface.destroy(session._get_current_object())
    except StorageException:
        return error_response(ErrorCode.INTERNAL_ERROR, message="Logout failed", status_code=500, log_error=False)

    if username:
        logger.info(f"User {username} logged out")
    return success_response(message="Logged out successfully")


@auth_blueprint.route("/check", methods=["GET"])
def check():
    if current_user.is_authenticated:
        return {"authenticated": True, "username": current_user.username}
    return {"authenticated": False}


@auth_blueprint.route("/change-password", methods=["POST"])
@login_required
@handle_api_errors
def change_password():
    data = request_fields()
    current_password = data.get("currentPassword")
    new_password = data.get("newPassword")

    if not current_password or not new_password:
        return error_response(ErrorCode.VALIDATION_ERROR, message="Current and new password required")

    get_user_repository().change_password(current_user.username, current_password, new_password)
    return success_response(message="Password changed successfully")
