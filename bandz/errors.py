"""
Domain exceptions for the scheduler and evaluator.

Services raise these; the Flask error handler registered in
``register_error_handlers`` renders them as ``{"code", "message", "details"}``
JSON payloads with the matching HTTP status.
"""

from __future__ import annotations

import logging
from typing import Any

from marshmallow import ValidationError

log = logging.getLogger(__name__)


def error(code: str, http: int, message: str, details=None):
    """Return a consistent JSON error payload with HTTP status."""
    payload = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return payload, http


class BandzError(Exception):
    """Base exception for all domain errors."""
    code = "error"
    http_status = 500

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = {"code": self.code, "message": self.message}
        if self.details is not None:
            result["details"] = self.details
        return result


class NotFound(BandzError):
    """Referenced patient, practice, prompt or submission does not exist."""
    code = "not_found"
    http_status = 404


class InvalidInput(BandzError):
    """Malformed date, slot, status or identifier."""
    code = "invalid_input"
    http_status = 400


class Conflict(BandzError):
    """
    Raised when a write would violate a one-per-key rule.

    Currently only a second photo submission for the same prompt.
    """
    code = "conflict"
    http_status = 409


class UnsupportedDatabase(BandzError):
    """The configured database cannot do an idempotent insert of daily prompts."""
    code = "unsupported_database"
    http_status = 500


def register_error_handlers(app):
    @app.errorhandler(BandzError)
    def _handle_domain_error(exc: BandzError):
        log.info("%s: %s", exc.code, exc.message)
        return exc.to_dict(), exc.http_status

    @app.errorhandler(ValidationError)
    def _handle_validation_error(exc: ValidationError):
        return error("invalid_input", 400, "Invalid payload", exc.messages)
