"""
Content Routes - the localized site copy
"""

from flask import Blueprint
from flask_login import login_required

from api_responses import data_response, handle_api_errors, json_object_body, success_response
from dependencies import get_content_repository

content_bp = Blueprint("content", __name__, url_prefix="/api")


@content_bp.route("/content")
@handle_api_errors
def get_content():
    return data_response(get_content_repository().get())


@content_bp.route("/content", methods=["PUT"])
@login_required
@handle_api_errors
def replace_content():
    """The body replaces the whole document, all locales included"""
    get_content_repository().replace(json_object_body())
    return success_response(message="Content updated successfully")
