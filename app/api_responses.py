"""
API Response Utilities - Standardized error handling and responses
"""

from flask import jsonify, request
from functools import wraps
from werkzeug.exceptions import HTTPException
import logging

from exceptions import CmsException, StorageException, ValidationException

logger = logging.getLogger(__name__)


# API Error Codes
class ErrorCode:
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"


DEFAULT_MESSAGES = {
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.VALIDATION_ERROR: "Invalid request parameters",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
    ErrorCode.UNAUTHORIZED: "Unauthorized - Please login",
    ErrorCode.PAYLOAD_TOO_LARGE: "File too large",
}


def success_response(message=None, status_code=200, **fields):
    """
    Acknowledgement body for mutating endpoints: {"success": true, "message": ...}
    """
    response = {"success": True}

    if message:
        response["message"] = message

    response.update(fields)
    return jsonify(response), status_code


def data_response(data, status_code=200):
    """Return a resource (list or object) verbatim"""
    return jsonify(data), status_code


def error_response(
    error_code=ErrorCode.INTERNAL_ERROR,
    message=None,
    status_code=400,
    log_error=True,
):
    """
    Standard error response format for API endpoints
    """
    response = {
        "error": message or DEFAULT_MESSAGES.get(error_code, "Request failed"),
        "code": error_code,
    }

    if log_error and error_code == ErrorCode.INTERNAL_ERROR:
        logger.error(f"{error_code}: {message}")

    return jsonify(response), status_code


def handle_api_errors(f):
    """
    Decorator to standardize error handling for API endpoints
    Automatically catches exceptions and returns consistent error responses
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except StorageException as e:
            return error_response(ErrorCode.INTERNAL_ERROR, message=e.public_message, status_code=500, log_error=False)
        except CmsException as e:
            return error_response(e.code, message=e.message, status_code=e.status_code, log_error=False)
        except ValueError as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=str(e), status_code=400)
        except KeyError as e:
            return error_response(
                ErrorCode.VALIDATION_ERROR, message=f"Missing required parameter: {str(e)}", status_code=400
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unhandled exception in {f.__name__}: {e}", exc_info=True)
            return error_response(
                ErrorCode.INTERNAL_ERROR,
                message="An unexpected error occurred",
                status_code=500,
                log_error=False,
            )

    return wrapper


def json_object_body():
    """The request body as a dict, or a ValidationException"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    return data


def request_fields():
    """The JSON body if it is an object, otherwise an empty dict"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
