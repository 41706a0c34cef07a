"""
Custom exceptions and Flask exception handlers.

Every handled error reaches the client as ``{"error": <message>, "code": <CODE>}``.
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class CmsException(Exception):
    """Base exception for the CMS backend"""
    status_code = 400

    def __init__(self, message: str, code: str = "CMS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'error': self.message,
            'code': self.code,
        }


class ValidationException(CmsException):
    """Bad input shape, length or pattern"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")
        logger.warning(f"Validation error: {message}")


class AuthenticationException(CmsException):
    """Missing or wrong credentials"""
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="UNAUTHORIZED")
        logger.warning(f"Authentication error: {message}")


class NotFoundException(CmsException):
    """Requested record does not exist"""
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class SizeLimitException(CmsException):
    """Upload payload too large"""
    status_code = 413

    def __init__(self, message: str = "File too large"):
        super().__init__(message, code="PAYLOAD_TOO_LARGE")
        logger.warning(f"Size limit error: {message}")


class StorageException(CmsException):
    """File I/O or JSON parse failure. The cause is logged, never returned."""
    status_code = 500

    def __init__(self, message: str, public_message: str = "An unexpected error occurred"):
        super().__init__(message, code="INTERNAL_ERROR")
        self.public_message = public_message
        logger.error(f"Storage error: {message}")

    def to_dict(self):
        return {
            'error': self.public_message,
            'code': self.code,
        }


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        if e.code == 413:
            return jsonify(SizeLimitException().to_dict()), 413
        return jsonify({
            'error': e.description,
            'code': e.name.upper().replace(' ', '_'),
        }), e.code

    @app.errorhandler(CmsException)
    def handle_cms_exception(e):
        """Handle CMS exceptions, each subclass carries its status code"""
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'error': 'An unexpected error occurred',
            'code': 'INTERNAL_ERROR',
        }), 500
