from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from models import storage
from utils.security import TokenError, PersistenceFailure

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def _debug_log(e):
    if current_app and current_app.debug:
        logger.debug("request failed", exc_info=e)


def register_error_handlers(app):
    # 400 Bad Request (generic)
    @app.errorhandler(400)
    def bad_request(e):
        _debug_log(e)
        message = getattr(e, "description", "Bad request")
        return error_response("BAD_REQUEST", message, 400)

    @app.errorhandler(401)
    def unauthorized(e):
        message = getattr(e, "description", "Unauthorized")
        return error_response("UNAUTHENTICATED", message, 401)

    @app.errorhandler(403)
    def forbidden(e):
        message = getattr(e, "description", "Forbidden")
        return error_response("FORBIDDEN", message, 403)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        _debug_log(e)
        message = getattr(e, "description", None) or "Resource not found"
        return error_response("NOT_FOUND", message, 404)

    # 409 Conflict
    @app.errorhandler(409)
    def conflict(e):
        _debug_log(e)
        message = getattr(e, "description", "Conflict")
        return error_response("CONFLICT", message, 409)

    # 413 Payload Too Large (MAX_CONTENT_LENGTH)
    @app.errorhandler(413)
    def too_large(e):
        limit = current_app.config.get("MAX_CONTENT_LENGTH")
        return error_response("PAYLOAD_TOO_LARGE", f"Upload exceeds {limit} bytes", 413)

    # 422 Unprocessable Entity (validation)
    @app.errorhandler(422)
    def unprocessable(e):
        _debug_log(e)
        message = getattr(e, "description", "Unprocessable entity")
        return error_response("VALIDATION_ERROR", message, 422)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        _debug_log(err)
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Expired sessions are normal traffic: no error logging, never the token itself
    @app.errorhandler(TokenError)
    def handle_token_error(err: TokenError):
        logger.debug("rejected token: %s", err.__class__.__name__)
        return error_response("UNAUTHENTICATED", err.message, 401)

    # Logged with detail where it is raised (user directory)
    @app.errorhandler(PersistenceFailure)
    def handle_persistence_failure(err: PersistenceFailure):
        return error_response("OPERATION_FAILED", "The operation could not be completed", 500)

    # Unique constraint races (email/phone registered concurrently)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        _debug_log(err)
        if "unique" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response("HTTP_ERROR", err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
