"""
Message Service.

Read-only message queries, each restricted to the client ids the caller
is allowed to see.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ...domain.entities.access import AccessGrant, RequestContext
from ...domain.entities.aggregation import ClientAggregations
from ...domain.entities.message import Message
from ...domain.exceptions import AuthorizationException, ValidationException
from ..interfaces.repositories import AggregationRepository, MessageRepository
from ..queries import ListQuery
from .access_resolver import AccessResolver

logger = logging.getLogger(__name__)


class MessageService:
    """
    Application service for message queries.

    Every operation resolves the caller's access grant first and fails
    closed: an empty grant is an authorization error, never an empty result.
    """

    def __init__(
        self,
        message_repo: MessageRepository,
        aggregation_repo: AggregationRepository,
        access_resolver: AccessResolver,
    ):
        self._message_repo = message_repo
        self._aggregation_repo = aggregation_repo
        self._access_resolver = access_resolver

    # =========================================================================
    # Authorization
    # =========================================================================

    async def _resolve_grant(self, context: RequestContext) -> AccessGrant:
        grant = await self._access_resolver.resolve(context)
        if grant.is_empty:
            logger.info(f"User {context.user_id} has no permitted devices")
            raise AuthorizationException("no devices are associated with this user")
        return grant

    async def _require_device(self, context: RequestContext, device_id: str) -> AccessGrant:
        grant = await self._resolve_grant(context)
        if not grant.allows(device_id):
            logger.info(f"User {context.user_id} denied access to device {device_id}")
            raise AuthorizationException(
                "access to this device is not permitted",
                resource=device_id,
            )
        return grant

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_message(self, context: RequestContext, message_id: str) -> Message:
        """
        Get one message the caller is allowed to see.

        Raises:
            AuthorizationException: If the grant is empty or excludes the
                message's client.
            EntityNotFoundException: If the message does not exist.
        """
        grant = await self._resolve_grant(context)

        message = await self._message_repo.find_by_id(message_id)
        if not grant.allows(message.client_id):
            logger.info(f"User {context.user_id} denied access to message {message_id}")
            raise AuthorizationException("access to this message is not permitted")

        return message

    async def list_messages(
        self,
        context: RequestContext,
        filters: Optional[Dict[str, Any]],
        sort_field: Optional[str],
        sort_order: Optional[str],
        skip: int,
        limit: int,
    ) -> Tuple[List[Message], int]:
        """
        List messages across every permitted client.

        Returns:
            The page of messages and the filter's total match count.
        """
        grant = await self._resolve_grant(context)

        query = ListQuery.build(
            filters=filters,
            sort_field=sort_field,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
            client_ids=grant.client_ids,
        )
        return await self._message_repo.list(query)

    async def list_messages_by_device(
        self,
        context: RequestContext,
        device_id: str,
        filters: Optional[Dict[str, Any]],
        sort_field: Optional[str],
        sort_order: Optional[str],
        skip: int,
        limit: int,
    ) -> Tuple[List[Message], int]:
        """
        List messages of one device.

        The device must be in the caller's grant; this is checked before
        the store is queried.
        """
        await self._require_device(context, device_id)

        query = ListQuery.build(
            filters=filters,
            sort_field=sort_field,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
            client_ids=[device_id],
        )
        return await self._message_repo.list(query)

    async def find_messages_by_topic(
        self,
        context: RequestContext,
        topic: str,
        limit: int,
    ) -> List[Message]:
        """Most recent permitted messages on a topic."""
        if not topic:
            raise ValidationException("topic is required")
        grant = await self._resolve_grant(context)
        return await self._message_repo.find_by_topic(topic, limit, client_ids=grant.client_ids)

    async def find_messages_by_client_id(
        self,
        context: RequestContext,
        client_id: str,
        limit: int,
    ) -> List[Message]:
        """Most recent messages of one permitted client."""
        await self._require_device(context, client_id)
        return await self._message_repo.find_by_client_id(client_id, limit)

    async def find_messages_by_time_range(
        self,
        context: RequestContext,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[Message]:
        """Most recent permitted messages inside [start, end]."""
        if start > end:
            raise ValidationException("start must not be after end")
        grant = await self._resolve_grant(context)
        return await self._message_repo.find_by_time_range(
            start, end, limit, client_ids=grant.client_ids
        )

    async def get_aggregations_by_device(
        self,
        context: RequestContext,
        device_id: str,
        period: Optional[str] = None,
    ) -> ClientAggregations:
        """Aggregated statistics of one permitted device, nested for graphing."""
        await self._require_device(context, device_id)

        buckets = await self._aggregation_repo.find_by_client_id(device_id, period=period)
        return ClientAggregations.from_buckets(device_id, buckets)
