"""
FastAPI dependency injection providers.

Services and clients are built once in the application lifespan and
stored on ``app.state``; these providers hand them to the routes.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..application.services import MessageService
from ..config import AppSettings
from ..domain.entities.access import RequestContext
from ..domain.exceptions import AuthenticationException
from ..infrastructure.external import IdentityPlatformClient
from ..infrastructure.security import (
    get_audience_from_token,
    get_user_email_from_token,
    get_user_id_from_token,
)
from .cancellation import cancel_on_disconnect

logger = logging.getLogger(__name__)

# Security scheme; missing or malformed credentials are reported as 401 below
bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> AppSettings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_identity_client(request: Request) -> IdentityPlatformClient:
    """Get identity provider client instance."""
    return request.app.state.identity_client


def get_message_service(request: Request) -> MessageService:
    """Get message service instance."""
    return request.app.state.message_service


def bearer_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """
    Get the bearer token from the Authorization header.

    Raises:
        AuthenticationException: If the header is missing or not a bearer
            credential.
    """
    if credentials is None:
        if not request.headers.get("Authorization"):
            raise AuthenticationException("Authorization header is missing")
        raise AuthenticationException("Invalid Authorization header format")
    return credentials.credentials


async def get_request_context(
    request: Request,
    token: str = Depends(bearer_token),
    identity_client: IdentityPlatformClient = Depends(get_identity_client),
    settings: AppSettings = Depends(get_app_settings),
) -> RequestContext:
    """
    Authenticate the caller.

    Verifies the token with the identity provider, then reads the caller's
    identity from its claims. Raises AuthenticationException on any failure.
    """
    identity = await cancel_on_disconnect(request, identity_client.verify_token(token))

    user_id = get_user_id_from_token(token)
    if not user_id:
        logger.warning("User ID not found in token claims")
        raise AuthenticationException("Invalid token")

    audience = settings.auth.audience
    if audience and audience not in get_audience_from_token(token):
        logger.warning(f"Token audience mismatch for user {user_id}")
        raise AuthenticationException("Invalid token audience")

    email = get_user_email_from_token(token) or identity.email

    logger.debug(f"User authenticated: ID={user_id}")
    return RequestContext(user_id=user_id, email=email, token=token)
