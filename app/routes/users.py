"""
User Routes - account management for logged-in editors
"""

from flask import Blueprint
from flask_login import current_user, login_required

from api_responses import (
    ErrorCode,
    data_response,
    error_response,
    handle_api_errors,
    request_fields,
    success_response,
)
from dependencies import get_user_repository

users_bp = Blueprint("users", __name__, url_prefix="/api")


@users_bp.route("/users")
@login_required
@handle_api_errors
def list_users():
    """Accounts without their password hashes"""
    return data_response(get_user_repository().list())


@users_bp.route("/users", methods=["POST"])
@login_required
@handle_api_errors
def create_user():
    data = request_fields()
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return error_response(ErrorCode.VALIDATION_ERROR, message="Username and password required")

    user = get_user_repository().create(username, password, created_by=current_user.username)
    return data_response(user, status_code=201)


@users_bp.route("/users/<username>", methods=["DELETE"])
@login_required
@handle_api_errors
def delete_user(username):
    get_user_repository().delete(username, acting_username=current_user.username)
    return success_response(message="User deleted successfully")


@users_bp.route("/users/<username>/reset-password", methods=["POST"])
@login_required
@handle_api_errors
def reset_password(username):
    new_password = request_fields().get("newPassword")

    if not new_password:
        return error_response(ErrorCode.VALIDATION_ERROR, message="New password required")

    get_user_repository().reset_password(username, new_password, reset_by=current_user.username)
    return success_response(message="Password reset successfully")
