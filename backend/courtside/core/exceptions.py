# backend/courtside/core/exceptions.py
"""
Domain-specific exceptions for the Courtside session platform.

These exceptions carry a stable ``code`` naming the violated rule so the
(external) API layer can map them to responses without string matching.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Session-specific exceptions


def _session_details(
    service_type: Optional[str], session_id: Optional[str], **extra: Any
) -> Dict[str, Any]:
    details: Dict[str, Any] = {"service_type": service_type, "session_id": session_id}
    details.update({k: v for k, v in extra.items() if v is not None})
    return details


class InvalidServiceTypeException(ValidationException):
    """Raised for a service type outside the supported set."""

    def __init__(self, value: Any, allowed: Optional[list] = None):
        super().__init__(
            message=f"Invalid service type: {value!r}",
            code="INVALID_SERVICE_TYPE",
            details={"service_type": value, "allowed": allowed or []},
        )


class InvalidRatingException(ValidationException):
    """Raised when feedback carries a rating outside 1..5."""

    def __init__(self, rating: Any):
        super().__init__(
            message="Rating must be an integer between 1 and 5",
            code="INVALID_RATING",
            details={"rating": rating},
        )


class SessionNotFoundException(NotFoundException):
    def __init__(self, service_type: str, session_id: str):
        super().__init__(
            message="Session not found",
            code="SESSION_NOT_FOUND",
            details=_session_details(service_type, session_id),
        )


class SessionUnavailableException(ConflictException):
    """Raised when a session is no longer open for requests or confirmation."""

    def __init__(self, service_type: str, session_id: str, state: Optional[str] = None):
        super().__init__(
            message="Session is not available",
            code="SESSION_UNAVAILABLE",
            details=_session_details(service_type, session_id, state=state),
        )


class DuplicateSessionRequestException(ConflictException):
    def __init__(self, service_type: str, session_id: str, user_id: str):
        super().__init__(
            message="You have already requested this session",
            code="SESSION_REQUEST_EXISTS",
            details=_session_details(service_type, session_id, user_id=user_id),
        )


class SessionRequestNotFoundException(NotFoundException):
    def __init__(self, service_type: str, session_id: str, user_id: Optional[str] = None):
        super().__init__(
            message="No pending request found for this session",
            code="SESSION_REQUEST_NOT_FOUND",
            details=_session_details(service_type, session_id, user_id=user_id),
        )


class SessionRequestAlreadyProcessedException(ConflictException):
    """Raised when a request was approved or rejected before this call reached it."""

    def __init__(self, service_type: str, session_id: str, state: Optional[str] = None):
        super().__init__(
            message="Session request not found or already processed",
            code="SESSION_REQUEST_ALREADY_PROCESSED",
            details=_session_details(service_type, session_id, state=state),
        )


class SessionNotBookedException(BusinessRuleException):
    def __init__(self, service_type: str, session_id: str, state: Optional[str] = None):
        super().__init__(
            message="Session is not booked",
            code="SESSION_NOT_BOOKED",
            details=_session_details(service_type, session_id, state=state),
        )


class SessionAlreadyFinalizedException(BusinessRuleException):
    """Raised when a cancelled or completed session is asked to change state."""

    def __init__(self, service_type: str, session_id: str, state: Optional[str] = None):
        super().__init__(
            message=f"Session is already {state}" if state else "Session is already finalized",
            code="SESSION_ALREADY_FINALIZED",
            details=_session_details(service_type, session_id, state=state),
        )


class SessionNotCompletedException(BusinessRuleException):
    def __init__(self, service_type: str, session_id: str, state: Optional[str] = None):
        super().__init__(
            message="Feedback can only be added to completed sessions",
            code="SESSION_NOT_COMPLETED",
            details=_session_details(service_type, session_id, state=state),
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations.
    """
