"""
Identity Platform API client.

Confirms that a bearer token is currently valid by looking it up against
the identity provider's REST endpoint.
"""
import logging
from typing import Optional

import httpx

from ...config import AuthSettings
from ...domain.entities.access import IdentityUser
from ...domain.exceptions import AuthenticationException

logger = logging.getLogger(__name__)


class IdentityPlatformClient:
    """
    Client for the identity provider's account lookup endpoint.

    Every failure, whatever its cause, is reported as an authentication
    failure so that the request is rejected with 401.
    """

    def __init__(
        self,
        settings: AuthSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the identity client.

        Args:
            settings: Identity provider settings.
            transport: Optional httpx transport, used by tests.
        """
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Content-Type": "application/json"},
                timeout=self.settings.timeout,
                transport=self._transport,
            )
            logger.info("Identity Platform client initialized")

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Identity Platform client disconnected")

    async def verify_token(self, token: str) -> IdentityUser:
        """
        Look up the account a token belongs to.

        Args:
            token: Bearer token taken from the Authorization header.

        Returns:
            The first user record of the lookup response.

        Raises:
            AuthenticationException: If the token could not be confirmed.
        """
        if not token:
            raise AuthenticationException("Authorization header is missing")

        await self.connect()

        try:
            response = await self._client.post(
                self.settings.lookup_url,
                params={"key": self.settings.api_key},
                json={"idToken": token},
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to validate token: {type(e).__name__}: {e}")
            raise AuthenticationException("Invalid or expired token")

        if response.status_code != 200:
            logger.warning(
                f"Token validation failed with status code: {response.status_code}, "
                f"response: {response.text}"
            )
            raise AuthenticationException("Invalid or expired token")

        try:
            body = response.json()
        except ValueError:
            logger.error("Failed to parse identity lookup response")
            raise AuthenticationException("Invalid or expired token")

        users = body.get("users") if isinstance(body, dict) else None
        if not isinstance(users, list) or not users or not isinstance(users[0], dict):
            logger.warning("No user found in token response")
            raise AuthenticationException("Invalid token")

        local_id = users[0].get("localId") or ""
        if not isinstance(local_id, str) or not local_id:
            logger.warning("User ID not found in token response")
            raise AuthenticationException("Invalid token")

        email = users[0].get("email") or ""
        return IdentityUser(local_id=local_id, email=email if isinstance(email, str) else "")
