"""
Upload Routes - images for speaker profiles and content
"""

from flask import Blueprint, request
from flask_login import login_required

from api_responses import data_response, handle_api_errors
from dependencies import get_image_uploads

upload_bp = Blueprint("upload", __name__, url_prefix="/api")


@upload_bp.route("/upload", methods=["POST"])
@login_required
@handle_api_errors
def upload_image():
    url = get_image_uploads().save(request.files.get("image"))
    return data_response({"url": url})
