"""
Access resolution for message queries.

Resolves, per request, the client ids the caller may query.
"""
import logging

from ...domain.entities.access import AccessGrant, RequestContext
from ...infrastructure.external.project_service_client import ProjectServiceClient

logger = logging.getLogger(__name__)


class AccessResolver:
    """
    Turns the project service's user list into an access grant.

    Grants are fetched fresh on every call and never cached.
    """

    def __init__(self, project_client: ProjectServiceClient):
        self._project_client = project_client

    async def resolve(self, context: RequestContext) -> AccessGrant:
        """
        Resolve the caller's permitted client ids.

        Args:
            context: The authenticated caller.

        Returns:
            The flattened grant; may be empty.
        """
        users = await self._project_client.fetch_users(context.token)
        grant = AccessGrant.from_users(users)

        logger.debug(
            f"Resolved {len(grant.client_ids)} client ids across "
            f"{len(grant.project_ids)} projects for user {context.user_id}"
        )
        return grant
