"""Machine-readable error codes returned in the API error envelope.

Every error response carries one of these codes in ``error.code`` so clients
can branch on the failure kind without parsing human-readable messages.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes used in ``{"success": false, "error": {"code": ...}}``."""

    APP_ERROR = "APP_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    HTTP_ERROR = "HTTP_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
