"""
MongoDB implementation of the message repository.

Translates store-neutral list queries into pymongo filter documents.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from ....application.interfaces.repositories import MessageRepository
from ....application.queries import CLIENT_ID_FIELD, ID_FILTER_KEYS, ListQuery, id_filter_value
from ....domain.entities.message import Message
from ....domain.exceptions import EntityNotFoundException, ValidationException
from ..documents import message_from_document

logger = logging.getLogger(__name__)


def parse_object_id(value: str) -> ObjectId:
    """
    Parse a hex string into an ObjectId.

    Raises:
        ValidationException: If the value is not a 24 character hex string.
    """
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationException("invalid message ID format")
    return ObjectId(value)


def translate_filter(query: ListQuery) -> Dict[str, Any]:
    """
    Build the Mongo filter document for a list query.

    Raises:
        ValidationException: If an identifier filter is malformed.
    """
    mongo_filter: Dict[str, Any] = {}
    for key, value in query.filters.items():
        if key in ID_FILTER_KEYS:
            raw = id_filter_value(key, value)
            if not ObjectId.is_valid(raw):
                raise ValidationException("invalid ObjectID format in filter")
            mongo_filter["_id"] = ObjectId(raw)
        else:
            mongo_filter[key] = value

    if query.client_ids is not None:
        mongo_filter[CLIENT_ID_FIELD] = {"$in": list(query.client_ids)}

    return mongo_filter


def _client_restriction(client_ids: Optional[Iterable[str]]) -> Dict[str, Any]:
    if client_ids is None:
        return {}
    return {CLIENT_ID_FIELD: {"$in": sorted(set(client_ids))}}


class MongoMessageRepository(MessageRepository):
    """Message repository backed by a MongoDB collection."""

    def __init__(self, database: AsyncDatabase, collection_name: str = "messages"):
        self._collection = database[collection_name]

    async def find_by_id(self, message_id: str) -> Message:
        object_id = parse_object_id(message_id)

        document = await self._collection.find_one({"_id": object_id})
        if document is None:
            raise EntityNotFoundException("Message", message_id, message="message not found")

        return self._document_to_entity(document)

    async def list(self, query: ListQuery) -> Tuple[List[Message], int]:
        mongo_filter = translate_filter(query)
        direction = ASCENDING if query.ascending else DESCENDING

        total = await self._collection.count_documents(mongo_filter)

        cursor = (
            self._collection.find(mongo_filter)
            .sort(query.sort_field, direction)
            .skip(query.skip)
            .limit(query.limit)
        )
        messages = [self._document_to_entity(doc) async for doc in cursor]

        logger.debug(
            f"Listed {len(messages)} of {total} messages "
            f"(sort={query.sort_field} {query.direction.value}, skip={query.skip})"
        )
        return messages, total

    async def find_by_topic(
        self,
        topic: str,
        limit: int,
        client_ids: Optional[Iterable[str]] = None,
    ) -> List[Message]:
        mongo_filter = {"topic": topic, **_client_restriction(client_ids)}
        return await self._find_recent(mongo_filter, limit)

    async def find_by_client_id(self, client_id: str, limit: int) -> List[Message]:
        return await self._find_recent({"client_id": client_id}, limit)

    async def find_by_time_range(
        self,
        start: datetime,
        end: datetime,
        limit: int,
        client_ids: Optional[Iterable[str]] = None,
    ) -> List[Message]:
        mongo_filter = {
            "timestamp": {"$gte": start, "$lte": end},
            **_client_restriction(client_ids),
        }
        return await self._find_recent(mongo_filter, limit)

    async def _find_recent(self, mongo_filter: Dict[str, Any], limit: int) -> List[Message]:
        cursor = (
            self._collection.find(mongo_filter)
            .sort("timestamp", DESCENDING)
            .limit(limit)
        )
        return [self._document_to_entity(doc) async for doc in cursor]

    @staticmethod
    def _document_to_entity(document: Dict[str, Any]) -> Message:
        data = dict(document)
        identifier = data.pop("_id", "")
        return message_from_document(str(identifier), data)
