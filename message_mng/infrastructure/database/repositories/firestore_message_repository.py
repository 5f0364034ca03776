"""
Firestore implementation of the message repository.

Translates store-neutral list queries into Firestore query builders.
"""
import logging
import re
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from firebase_admin import firestore
from google.cloud.firestore_v1.field_path import FieldPath

from ....application.interfaces.repositories import MessageRepository
from ....application.queries import CLIENT_ID_FIELD, ID_FILTER_KEYS, ListQuery, id_filter_value
from ....domain.entities.message import Message
from ....domain.exceptions import EntityNotFoundException, ValidationException
from ..documents import message_from_document

logger = logging.getLogger(__name__)

# Reserved document ids of the form __name__
RESERVED_ID_PATTERN = re.compile(r"^__.*__$")

MAX_DOCUMENT_ID_BYTES = 1500

# Firestore rejects "in" filters with more values than this
MAX_IN_VALUES = 30


def is_valid_document_id(value: Any) -> bool:
    """Check a string against Firestore's document id rules."""
    if not isinstance(value, str) or not value:
        return False
    if "/" in value or value in (".", ".."):
        return False
    if RESERVED_ID_PATTERN.match(value):
        return False
    return len(value.encode("utf-8")) <= MAX_DOCUMENT_ID_BYTES


def chunk_values(values: Iterable[str], size: int = MAX_IN_VALUES) -> List[List[str]]:
    """Split values into sorted groups small enough for one "in" filter."""
    values = sorted(set(values))
    return [values[i:i + size] for i in range(0, len(values), size)]


def _order_key(value: Any, document_id: str) -> Tuple:
    # Cross-type ordering follows Firestore's value type order
    if value is None:
        return (0, 0, document_id)
    if isinstance(value, bool):
        return (1, value, document_id)
    if isinstance(value, (int, float)):
        return (2, value, document_id)
    if isinstance(value, datetime):
        return (3, value, document_id)
    if isinstance(value, str):
        return (4, value, document_id)
    if isinstance(value, bytes):
        return (5, value, document_id)
    return (6, repr(value), document_id)


async def _collect(natives, limit: int) -> list:
    snapshots = []
    for native in natives:
        snapshots.extend([snapshot async for snapshot in native.limit(limit).stream()])
    return snapshots


def _merge(snapshots: list, field_name: str, ascending: bool) -> list:
    return sorted(
        snapshots,
        key=lambda snapshot: _order_key((snapshot.to_dict() or {}).get(field_name), snapshot.id),
        reverse=not ascending,
    )


class FirestoreMessageRepository(MessageRepository):
    """
    Message repository backed by a Firestore collection.

    Client restrictions larger than one "in" filter allows run as one query
    per chunk; pages are merged in memory and totals summed.
    """

    def __init__(self, client: "firestore.AsyncClient", collection_name: str = "messages"):
        self._client = client
        self._collection = client.collection(collection_name)

    async def find_by_id(self, message_id: str) -> Message:
        if not is_valid_document_id(message_id):
            raise ValidationException("invalid message ID format")

        snapshot = await self._collection.document(message_id).get()
        if not snapshot.exists:
            raise EntityNotFoundException("Message", message_id, message="message not found")

        return message_from_document(snapshot.id, snapshot.to_dict() or {})

    def translate(self, query: ListQuery) -> List:
        """
        Build the filtered and ordered Firestore queries, without pagination.

        Returns one query per chunk of permitted client ids, a single query
        when unrestricted, and none when the restriction is empty.

        Raises:
            ValidationException: If an identifier filter is malformed.
        """
        native = self._collection
        for key, value in query.filters.items():
            if key in ID_FILTER_KEYS:
                raw = id_filter_value(key, value)
                if not is_valid_document_id(raw):
                    raise ValidationException("invalid document ID format in filter")
                native = native.where(filter=firestore.FieldFilter(
                    FieldPath.document_id(), "==", self._collection.document(raw)
                ))
            else:
                native = native.where(filter=firestore.FieldFilter(key, "==", value))

        direction = firestore.Query.ASCENDING if query.ascending else firestore.Query.DESCENDING
        return [
            restricted.order_by(query.sort_field, direction=direction)
            for restricted in self._restrict(native, query.client_ids)
        ]

    async def list(self, query: ListQuery) -> Tuple[List[Message], int]:
        natives = self.translate(query)

        total = 0
        for native in natives:
            total += await self._count(native)

        if len(natives) == 1:
            page = natives[0].offset(query.skip).limit(query.limit)
            snapshots = [snapshot async for snapshot in page.stream()]
        else:
            window = query.skip + query.limit
            merged = _merge(await _collect(natives, window), query.sort_field, query.ascending)
            snapshots = merged[query.skip:window]

        messages = [message_from_document(s.id, s.to_dict() or {}) for s in snapshots]

        logger.debug(
            f"Listed {len(messages)} of {total} messages in {len(natives)} queries "
            f"(sort={query.sort_field} {query.direction.value}, skip={query.skip})"
        )
        return messages, total

    async def find_by_topic(
        self,
        topic: str,
        limit: int,
        client_ids: Optional[Iterable[str]] = None,
    ) -> List[Message]:
        native = self._collection.where(filter=firestore.FieldFilter("topic", "==", topic))
        return await self._find_recent(self._restrict(native, client_ids), limit)

    async def find_by_client_id(self, client_id: str, limit: int) -> List[Message]:
        native = self._collection.where(filter=firestore.FieldFilter(CLIENT_ID_FIELD, "==", client_id))
        return await self._find_recent([native], limit)

    async def find_by_time_range(
        self,
        start: datetime,
        end: datetime,
        limit: int,
        client_ids: Optional[Iterable[str]] = None,
    ) -> List[Message]:
        native = (
            self._collection
            .where(filter=firestore.FieldFilter("timestamp", ">=", start))
            .where(filter=firestore.FieldFilter("timestamp", "<=", end))
        )
        return await self._find_recent(self._restrict(native, client_ids), limit)

    @staticmethod
    def _restrict(native, client_ids: Optional[Iterable[str]]) -> List:
        if client_ids is None:
            return [native]
        return [
            native.where(filter=firestore.FieldFilter(CLIENT_ID_FIELD, "in", chunk))
            for chunk in chunk_values(client_ids)
        ]

    async def _find_recent(self, natives: List, limit: int) -> List[Message]:
        ordered = [
            native.order_by("timestamp", direction=firestore.Query.DESCENDING)
            for native in natives
        ]
        snapshots = await _collect(ordered, limit)
        if len(ordered) > 1:
            snapshots = _merge(snapshots, "timestamp", ascending=False)[:limit]
        return [message_from_document(s.id, s.to_dict() or {}) for s in snapshots]

    @staticmethod
    async def _count(native) -> int:
        results = await native.count(alias="total").get()
        for row in results:
            for aggregation in row:
                if aggregation.alias == "total":
                    return int(aggregation.value)
        return 0
