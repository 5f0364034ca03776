"""
Project service API client.

Resolves which MQTT users, and therefore which client ids, belong to the
projects the caller can see. The caller's bearer token is forwarded.
"""
import logging
from typing import Any, List, Optional

import httpx

from ...config import ProjectServiceSettings
from ...domain.entities.access import UserClients
from ...domain.exceptions import (
    MissingTokenException,
    UpstreamConnectionException,
    UpstreamRequestException,
    UpstreamResponseException,
    UpstreamStatusException,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "project service"


def _parse_user(item: Any) -> UserClients:
    if not isinstance(item, dict):
        raise ValueError("user entry is not an object")

    client_ids = item.get("client_ids") or []
    if not isinstance(client_ids, list) or not all(isinstance(c, str) for c in client_ids):
        raise ValueError("client_ids must be a list of strings")

    username = item.get("username") or ""
    project_id = item.get("project_id") or ""
    if not isinstance(username, str) or not isinstance(project_id, str):
        raise ValueError("username and project_id must be strings")

    return UserClients(username=username, client_ids=client_ids, project_id=project_id)


class ProjectServiceClient:
    """
    Client for the project service's MQTT users endpoint.

    Responsibilities:
    - Forward the caller's token
    - Report each failure mode as its own exception
    """

    def __init__(
        self,
        settings: ProjectServiceSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the project service client.

        Args:
            settings: Project service settings.
            transport: Optional httpx transport, used by tests.
        """
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def users_url(self) -> str:
        return self.settings.api_url.rstrip("/") + self.settings.users_path

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Accept": "*/*",
                    "Content-Type": "application/json",
                    "User-Agent": self.settings.user_agent,
                },
                timeout=self.settings.timeout,
                transport=self._transport,
            )
            logger.info(f"Project service client initialized: {self.settings.api_url}")

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Project service client disconnected")

    async def fetch_users(self, token: str) -> List[UserClients]:
        """
        Fetch the MQTT users visible to the caller.

        Args:
            token: The caller's bearer token.

        Returns:
            Users with their client ids and project id.

        Raises:
            MissingTokenException: If no token is available.
            UpstreamRequestException: If the request could not be built.
            UpstreamConnectionException: If the service could not be reached.
            UpstreamStatusException: If the service answered with non-200.
            UpstreamResponseException: If the body is not the expected JSON.
        """
        if not token:
            raise MissingTokenException()

        await self.connect()

        try:
            request = self._client.build_request(
                "GET",
                self.users_url,
                headers={"Authorization": f"Bearer {token}"},
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError) as e:
            logger.error(f"Failed to create HTTP request: {e}")
            raise UpstreamRequestException(SERVICE_NAME, "failed to create HTTP request", str(e))

        try:
            response = await self._client.send(request)
        except httpx.UnsupportedProtocol as e:
            logger.error(f"Failed to create HTTP request: {e}")
            raise UpstreamRequestException(SERVICE_NAME, "failed to create HTTP request", str(e))
        except httpx.HTTPError as e:
            logger.error(f"HTTP request failed: {type(e).__name__}: {e}")
            raise UpstreamConnectionException(SERVICE_NAME, "failed to connect to project API", str(e))

        if response.status_code != 200:
            logger.error(
                f"Project API returned non-200 status: {response.status_code}, "
                f"body: {response.text}"
            )
            raise UpstreamStatusException(SERVICE_NAME, response.status_code, response.text)

        try:
            body = response.json()
            if not isinstance(body, list):
                raise ValueError("expected a JSON array")
            users = [_parse_user(item) for item in body]
        except ValueError as e:
            logger.error(f"Failed to parse users API response: {e}; body: {response.text}")
            raise UpstreamResponseException(SERVICE_NAME, "failed to parse users API response", str(e))

        logger.debug(f"Project service returned {len(users)} users")
        return users
