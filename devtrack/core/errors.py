# devtrack/core/errors.py
"""
Exception types raised across DevTrack and the Flask handlers that turn
them into error pages or JSON bodies.
"""

import logging
import traceback
from typing import Optional
from flask import Flask, render_template, jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """An error with an HTTP status and optional context for the response."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self):
        rv = dict(self.payload)
        rv['error'] = self.message
        rv['status'] = self.status_code
        return rv


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Duplicate device code, duplicate reference entry, exhausted retries."""
    status_code = 409


class SequenceOverflowError(ConflictError):
    """A kode item / year bucket has used all three-digit sequences."""


class DatabaseError(AppError):
    status_code = 500


def _wants_json() -> bool:
    return request.is_json or '/api/' in request.path


def _error_response(status: int, message: str, context: Optional[dict] = None, details: Optional[str] = None):
    if _wants_json():
        body = dict(context or {})
        body.update(error=message, status=status)
        if details:
            body['details'] = details
        return jsonify(body), status

    return render_template(
        'error.html',
        error_code=status,
        error_message=message,
        error_context=context or {},
        error_details=details,
        show_details=bool(details),
    ), status


def register_error_handlers(app: Flask):
    """Attach DevTrack's error responses to the app."""

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        # Allocation conflicts carry kode_item/year in the payload.
        logger.warning(f"{type(error).__name__} on {request.path}: {error.message}")
        context = {k: v for k, v in error.payload.items() if k != 'fields'}
        return _error_response(error.status_code, error.message, context)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        if error.code == 404:
            logger.info(f"404 {request.path}")
        else:
            logger.warning(f"HTTP {error.code} on {request.path}: {error.description}")
        return _error_response(error.code, error.description)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.critical(
            f"Unhandled {type(error).__name__} on {request.method} {request.path}: {error}",
            exc_info=True,
        )
        details = traceback.format_exc() if app.debug else None
        return _error_response(500, "Something went wrong while handling this request.", details=details)


def log_security_event(event_type: str, details: str, severity: str = "warning"):
    """Write a SECURITY EVENT line; the security log handler filters on that marker."""
    log_func = getattr(logger, severity, logger.warning)
    log_func(
        f"SECURITY EVENT - {event_type}: {details}",
        extra={'event_type': event_type, 'ip_address': request.remote_addr if request else 'N/A'},
    )
