"""
Application error taxonomy and the JSON error envelope.

Every API failure is rendered as ``{"success": false, "error": "...", "details": [...]}``;
``details`` only appears for validation failures.
"""
from __future__ import annotations

from typing import Any

from flask import Flask, current_app, g, jsonify, render_template, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge


class AppError(RuntimeError):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None, *, details: list[dict[str, str]] | None = None, status_code: int | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailure(AppError):
    status_code = 400
    message = "Validation failed"


class InvalidCredentials(AppError):
    status_code = 401
    message = "Invalid username or password"


class NoPendingLogin(AppError):
    status_code = 400
    message = "No pending login session"


class InvalidOrExpiredCode(AppError):
    status_code = 400
    message = "Invalid or expired verification code"


class AuthenticationRequired(AppError):
    status_code = 401
    message = "Authentication required"


class AdminRequired(AppError):
    status_code = 403
    message = "Admin access required"


class RegistrationClosed(AppError):
    status_code = 403
    message = "Registration is closed"


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class Conflict(AppError):
    status_code = 409
    message = "Resource already exists"


class FileUploadError(AppError):
    status_code = 400
    message = "File upload error"


class NotificationFailure(AppError):
    status_code = 500
    message = "Failed to send verification email"


class InternalError(AppError):
    status_code = 500
    message = "Internal server error"


def field_error(field: str, message: str) -> dict[str, str]:
    return {"field": field, "message": message}


def _is_api_request() -> bool:
    return request.path.startswith("/api/")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def _app_error(e: AppError):
        if e.status_code >= 500:
            current_app.logger.error("%s (request_id=%s): %s", type(e).__name__, getattr(g, "request_id", None), e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def _err_413(e):
        if _is_api_request():
            return jsonify(FileUploadError("File too large. Maximum size is 10MB per file.").to_dict()), 413
        return render_template("errors/error.html", code=413, message="Upload too large."), 413

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if _is_api_request():
            return jsonify({"success": False, "error": e.description or e.name}), e.code
        return render_template("errors/error.html", code=e.code, message=e.name), e.code

    @app.errorhandler(Exception)
    def _err_500(e):  # type: ignore[no-redef]
        s = getattr(g, "db_session", None)
        if s is not None:
            s.rollback()
        # Ensure stack trace shows in server logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        if _is_api_request():
            return jsonify(InternalError().to_dict()), 500
        return render_template("errors/error.html", code=500, message="Something went wrong."), 500
