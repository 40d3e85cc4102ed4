# app/core/errors.py
"""
Typed request errors and the global handlers that turn any failure into the
shared response envelope:

    {"success": false, "message": "...", "error": {"message": "...", "statusCode": 400}}
"""

import logging
import traceback
from flask import Flask, jsonify, request, current_app
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_limiter.errors import RateLimitExceeded


class AppError(Exception):
    """Business failure raised by services and routes, carrying its HTTP status."""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class UpstreamError(AppError):
    """The media or mail collaborator failed. Call sites pick 400 or 500."""
    status_code = 500


def error_response(message: str, status_code: int, **extra):
    body = {
        "success": False,
        "message": message,
        "error": {"message": message, "statusCode": status_code}
    }
    body["error"].update(extra)
    return jsonify(body), status_code


def _flatten_messages(messages, prefix: str = "") -> list:
    """Turns marshmallow's nested error dict into a flat [{field, message}] list."""
    errors = []
    if isinstance(messages, dict):
        for key, value in messages.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            errors.extend(_flatten_messages(value, field))
    elif isinstance(messages, list):
        for item in messages:
            if isinstance(item, (dict, list)):
                errors.extend(_flatten_messages(item, prefix))
            else:
                errors.append({"field": prefix or "_schema", "message": str(item)})
    else:
        errors.append({"field": prefix or "_schema", "message": str(messages)})
    return errors


def register_error_handlers(app: Flask):

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logging.error(f"{request.method} {request.path} failed: {err.message}")
        return error_response(err.message, err.status_code)

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err: ValidationError):
        errors = _flatten_messages(err.messages)
        body = {
            "success": False,
            "message": "Validation failed",
            "errors": errors,
            "error": {"message": "Validation failed", "statusCode": 400}
        }
        return jsonify(body), 400

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit_exceeded(err):
        return error_response("Too many requests. Please try again later.", 429)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        if err.code == 404:
            return error_response(f"Not found - {request.path}", 404)
        if err.code == 413:
            return error_response("Request body too large.", 413)
        return error_response(err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # Anything not handled above ends up here
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        if current_app.config.get('ENV_NAME') == 'production':
            return error_response("Internal Server Error", 500)
        return error_response(
            str(err) or "Internal Server Error", 500,
            stack=traceback.format_exc(),
            details=repr(err)
        )
