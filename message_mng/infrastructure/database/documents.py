"""
Decoding of stored documents into domain entities.

Shared by the Mongo and Firestore repositories so both stores produce
identical entities from identical documents.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ...domain.entities.aggregation import AggregatedData
from ...domain.entities.message import Message, MessageStatus, MessageType

logger = logging.getLogger(__name__)


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable timestamp in document: {value!r}")
    return None


def _message_type(data: Dict[str, Any]) -> MessageType:
    stored = data.get("type")
    if stored:
        try:
            return MessageType(stored)
        except ValueError:
            pass
    return MessageType.from_topic(data.get("topic"))


def _message_status(data: Dict[str, Any]) -> MessageStatus:
    try:
        return MessageStatus(data.get("status") or MessageStatus.RECEIVED.value)
    except ValueError:
        return MessageStatus.RECEIVED


def message_from_document(identifier: str, data: Dict[str, Any]) -> Message:
    """Build a Message from a stored document and its identifier."""
    parsed = data.get("parsed_payload")
    metadata = data.get("metadata") or {}
    return Message(
        id=identifier,
        topic=data.get("topic", ""),
        client_id=data.get("client_id", ""),
        payload=data.get("payload") or "",
        parsed_payload=parsed if isinstance(parsed, dict) else None,
        type=_message_type(data),
        status=_message_status(data),
        timestamp=_as_datetime(data.get("timestamp")),
        created_at=_as_datetime(data.get("created_at")),
        updated_at=_as_datetime(data.get("updated_at")),
        processed_at=_as_datetime(data.get("processed_at")),
        created_by=data.get("created_by"),
        metadata={str(k): str(v) for k, v in metadata.items()},
    )


def aggregation_from_document(data: Dict[str, Any]) -> AggregatedData:
    """Build an AggregatedData bucket from a stored document."""
    return AggregatedData(
        client_id=data.get("client_id", ""),
        channel=str(data.get("channel", "")),
        variable=str(data.get("variable", "")),
        period=str(data.get("period", "")),
        timestamp=_as_datetime(data.get("timestamp")) or datetime.min,
        sum=float(data.get("sum") or 0.0),
        count=int(data.get("count") or 0),
        min=float(data.get("min") or 0.0),
        max=float(data.get("max") or 0.0),
        avg=float(data.get("avg") or 0.0),
    )
