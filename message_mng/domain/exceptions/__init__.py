# Domain Exceptions
from .domain_exceptions import (
    DomainException,
    EntityNotFoundException,
    ValidationException,
    AuthenticationException,
    MissingTokenException,
    AuthorizationException,
    UpstreamServiceException,
    UpstreamRequestException,
    UpstreamConnectionException,
    UpstreamStatusException,
    UpstreamResponseException,
    RequestCancelledException,
)

__all__ = [
    'DomainException',
    'EntityNotFoundException',
    'ValidationException',
    'AuthenticationException',
    'MissingTokenException',
    'AuthorizationException',
    'UpstreamServiceException',
    'UpstreamRequestException',
    'UpstreamConnectionException',
    'UpstreamStatusException',
    'UpstreamResponseException',
    'RequestCancelledException',
]
