"""
Web Routes - health check, uploaded images and the admin page
"""

from flask import Blueprint, current_app, send_from_directory

from constants import BUILD_VERSION
from dependencies import get_image_uploads

web_bp = Blueprint("web", __name__)

@web_bp.route("/api/health")
def health():
    return {"status": "healthy", "version": BUILD_VERSION}

@web_bp.route("/uploads/<path:name>")
def serve_upload(name):
    """send_from_directory refuses paths that leave the uploads directory"""
    return send_from_directory(get_image_uploads().uploads_dir, name)

@web_bp.route("/admin")
def admin_page():
    """The admin UI itself asks /api/auth/check and shows the login form"""
    return send_from_directory(current_app.config["PUBLIC_DIR"], "admin.html")
