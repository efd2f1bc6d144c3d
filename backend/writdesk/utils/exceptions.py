"""
Custom exception classes
"""
from typing import Dict, Optional

from fastapi import HTTPException


# ============================================================================
# Case service client errors
# ============================================================================

class CaseApiError(Exception):
    """Base for every failure talking to the remote case service."""

    default_message = "Case service request failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)


class ServiceUnavailableError(CaseApiError):
    """Raised when the case service cannot be reached"""
    default_message = "Unable to reach the case service"


class ResponseParseError(CaseApiError):
    """Raised when the case service returns a body that is not JSON"""
    default_message = "Unable to parse server response"


class AuthenticationError(CaseApiError):
    """Raised on a missing token or a 401/403 from a protected path"""
    default_message = "Authentication required. Please login again."


class CaseApiRequestError(CaseApiError):
    """Raised when the case service rejects a request (message is passed through)"""


# ============================================================================
# Local validation errors (never reach the network)
# ============================================================================

class FormValidationError(Exception):
    """Raised when a form is missing required fields"""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        self.message = message or "Please fill in required fields"
        super().__init__(self.message)


class AttachmentValidationError(Exception):
    """Raised when an attachment is too large or of a disallowed type"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ============================================================================
# API errors
# ============================================================================

class WritNotFoundError(HTTPException):
    """Raised when a writ doesn't exist"""
    def __init__(self, writ_id: str):
        super().__init__(
            status_code=404,
            detail=f"Writ {writ_id} not found"
        )


class DraftNotFoundError(HTTPException):
    """Raised when a writ has no draft proceeding to resume"""
    def __init__(self, writ_id: str):
        super().__init__(
            status_code=404,
            detail=f"No draft proceeding found for writ {writ_id}"
        )


class DraftAlreadyExistsError(HTTPException):
    """Raised when a new proceeding is started for a writ that has a draft"""
    def __init__(self, writ_id: str):
        super().__init__(
            status_code=409,
            detail=f"Writ {writ_id} already has a draft proceeding. Resume the draft instead."
        )
