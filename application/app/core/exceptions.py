"""
Quote engine error taxonomy.

Every failure the engine reports is a ``QuoteError``; the HTTP layer maps the
``status_code`` and ``error_code`` carried on the exception to the
``{"ok": false, "error": ...}`` envelope.
"""
from typing import Any, Dict, List, Optional

from app.core.constants import QuoteErrorCode


class QuoteError(Exception):
    status_code = 500
    default_error_code = QuoteErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, error_code: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        payload = {"ok": False, "error": self.message, "error_code": self.error_code}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class QuoteValidationError(QuoteError):
    """Malformed request shape; the quote is not attempted."""
    status_code = 400
    default_error_code = QuoteErrorCode.VALIDATION_ERROR


class InvalidPromotionError(QuoteError):
    """A supplied promotion code that is unknown, inactive, out of window or malformed."""
    status_code = 400
    default_error_code = QuoteErrorCode.INVALID_PROMOTION


class QuoteInternalError(QuoteError):
    """Unexpected collaborator fault (catalog or promotion store)."""
    status_code = 500
    default_error_code = QuoteErrorCode.INTERNAL_ERROR
