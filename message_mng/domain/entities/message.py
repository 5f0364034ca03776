"""
Message entities.

Messages are MQTT publications captured by the ingestion pipeline and
stored one document per publication.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class MessageType(str, Enum):
    """Message category derived from the MQTT topic."""
    STATUS = "status"
    EVENT = "event"
    ONLINE = "online"
    COMMAND = "command"
    TELEMETRY = "telemetry"
    ALERT = "alert"
    RPC = "rpc"
    UNKNOWN = "unknown"

    @classmethod
    def from_topic(cls, topic: Optional[str]) -> "MessageType":
        """
        Derive the category from a topic.

        The first category whose name appears in the topic wins, checked
        in declaration order.
        """
        lowered = (topic or "").lower()
        for candidate in cls:
            if candidate is cls.UNKNOWN:
                continue
            if candidate.value in lowered:
                return candidate
        return cls.UNKNOWN


class MessageStatus(str, Enum):
    """Processing status of a message."""
    RECEIVED = "received"
    PROCESSED = "processed"
    FAILED = "failed"
    PENDING = "pending"


@dataclass
class Message:
    """An MQTT message as stored in the messages collection."""
    id: str
    topic: str
    client_id: str
    payload: str = ""
    parsed_payload: Optional[Dict[str, Any]] = None
    type: MessageType = MessageType.UNKNOWN
    status: MessageStatus = MessageStatus.RECEIVED
    timestamp: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    created_by: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
