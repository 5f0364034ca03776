"""
Repository interfaces (ports) for message storage.

These interfaces define the contract for persistence operations
without specifying which document store backs them.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ...domain.entities.aggregation import AggregatedData
from ...domain.entities.message import Message
from ..queries import ListQuery


class MessageRepository(ABC):
    """
    Read access to the messages collection.

    Implementations must behave identically for every operation; only the
    native identifier format differs between stores.
    """

    @abstractmethod
    async def find_by_id(self, message_id: str) -> Message:
        """
        Get a message by its store-assigned identifier.

        Raises:
            ValidationException: If the identifier is malformed.
            EntityNotFoundException: If no message has this identifier.
        """

    @abstractmethod
    async def list(self, query: ListQuery) -> Tuple[List[Message], int]:
        """
        Run a filtered, sorted, paginated query.

        Returns:
            The page of messages and the total number of messages matching
            the filter, independent of pagination.

        Raises:
            ValidationException: If an identifier filter is malformed.
        """

    @abstractmethod
    async def find_by_topic(
        self,
        topic: str,
        limit: int,
        client_ids: Optional[Iterable[str]] = None,
    ) -> List[Message]:
        """Most recent messages published on a topic."""

    @abstractmethod
    async def find_by_client_id(self, client_id: str, limit: int) -> List[Message]:
        """Most recent messages from one client."""

    @abstractmethod
    async def find_by_time_range(
        self,
        start: datetime,
        end: datetime,
        limit: int,
        client_ids: Optional[Iterable[str]] = None,
    ) -> List[Message]:
        """Most recent messages with a timestamp inside [start, end]."""


class AggregationRepository(ABC):
    """Read access to the aggregations collection."""

    @abstractmethod
    async def find_by_client_id(
        self,
        client_id: str,
        period: Optional[str] = None,
    ) -> List[AggregatedData]:
        """All aggregation buckets of a client, optionally for one period."""
