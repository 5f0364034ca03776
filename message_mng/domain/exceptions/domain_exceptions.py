"""
Domain Exceptions - Custom exceptions for domain-specific errors.

Every exception maps to exactly one HTTP status at the API boundary.
"""
from typing import Any, Dict, Optional


class DomainException(Exception):
    """
    Base exception for all domain-related errors.

    All domain exceptions should inherit from this class to allow
    for consistent error handling across the application.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the API error envelope."""
        return {'error': self.message}


class EntityNotFoundException(DomainException):
    """Raised when a requested entity cannot be found."""

    def __init__(
        self,
        entity_type: str,
        entity_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        msg = message or f"{entity_type} not found"
        super().__init__(
            message=msg,
            code='ENTITY_NOT_FOUND',
            details={'entity_type': entity_type, 'entity_id': entity_id}
        )


class ValidationException(DomainException):
    """Raised when client input fails validation."""

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message=message, code='VALIDATION_ERROR')


class AuthenticationException(DomainException):
    """Raised when the caller's identity cannot be established."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message, code='NOT_AUTHENTICATED')


class MissingTokenException(AuthenticationException):
    """Raised when a bearer token is required but not available."""

    def __init__(self, message: str = "authorization token is missing"):
        super().__init__(message=message)


class AuthorizationException(DomainException):
    """Raised when the caller may not access the requested resource."""

    def __init__(
        self,
        message: str = "Access denied",
        resource: Optional[str] = None
    ):
        details = {}
        if resource:
            details['resource'] = resource
        super().__init__(
            message=message,
            code='NOT_AUTHORIZED',
            details=details
        )


class UpstreamServiceException(DomainException):
    """Raised when an external service call fails."""

    def __init__(
        self,
        service: str,
        message: str,
        original_error: Optional[str] = None
    ):
        self.service = service
        super().__init__(
            message=message,
            code='UPSTREAM_SERVICE_ERROR',
            details={
                'service': service,
                'original_error': original_error
            }
        )


class UpstreamRequestException(UpstreamServiceException):
    """The outbound request could not be built."""


class UpstreamConnectionException(UpstreamServiceException):
    """The external service could not be reached."""


class UpstreamStatusException(UpstreamServiceException):
    """The external service answered with a non-200 status."""

    def __init__(self, service: str, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(
            service=service,
            message=f"{service} returned status {status_code}",
        )


class UpstreamResponseException(UpstreamServiceException):
    """The external service answered with a body that could not be parsed."""


class RequestCancelledException(DomainException):
    """Raised when the inbound request went away before work completed."""

    def __init__(self, message: str = "Request cancelled by client"):
        super().__init__(message=message, code='REQUEST_CANCELLED')
