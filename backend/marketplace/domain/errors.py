"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400
    retryable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "retryable": self.retryable
            }
        }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class ForbiddenError(DomainError):
    """Actor's role or ownership does not allow the action"""
    error_code = "FORBIDDEN"
    http_status = 403


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class IllegalTransitionError(ValidationError):
    """Action is not listed for the record's current state"""
    error_code = "ILLEGAL_TRANSITION"


class MissingReasonError(ValidationError):
    """Reason-required action submitted without a reason"""
    error_code = "MISSING_REASON"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class RecordNotFoundError(NotFoundError):
    """Workflow record not found"""
    error_code = "RECORD_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Record changed between read and commit; re-read and retry"""
    error_code = "CONFLICT"
    http_status = 409
    retryable = True


class InvalidStateError(DomainError):
    """Operation not valid for the record's current state"""
    error_code = "INVALID_STATE"
    http_status = 409


# Infrastructure Errors
class StoreUnavailableError(DomainError):
    """Record store could not be reached"""
    error_code = "STORE_UNAVAILABLE"
    http_status = 503
    retryable = True


class MaintenanceModeError(DomainError):
    """Platform is in maintenance mode"""
    error_code = "MAINTENANCE_MODE"
    http_status = 503


class OutcomeUnknownError(DomainError):
    """Request was sent but no response arrived; server state must be re-read"""
    error_code = "OUTCOME_UNKNOWN"
    http_status = 504
    retryable = True


ERRORS_BY_CODE = {
    cls.error_code: cls
    for cls in (
        DomainError, AuthenticationError, ForbiddenError, ValidationError,
        IllegalTransitionError, MissingReasonError, NotFoundError,
        RecordNotFoundError, ConflictError, InvalidStateError,
        StoreUnavailableError, MaintenanceModeError, OutcomeUnknownError,
    )
}


def error_from_payload(payload: Dict[str, Any], http_status: int) -> DomainError:
    """Rebuild a DomainError from an API error body"""
    error = payload.get("error") or {}
    code = error.get("code", "DOMAIN_ERROR")
    cls = ERRORS_BY_CODE.get(code)
    if cls is None:
        cls = DomainError
        for candidate in ERRORS_BY_CODE.values():
            if candidate.http_status == http_status and candidate is not DomainError:
                cls = candidate
                break
    return cls(error.get("message", "Request failed"), details=error.get("details"), error_code=code)
