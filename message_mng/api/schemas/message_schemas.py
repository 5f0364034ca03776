"""
Pydantic schemas for message API endpoints.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ...domain.entities.message import MessageStatus, MessageType


class MessageResponse(BaseModel):
    """Response for a stored message."""
    id: str
    topic: str
    payload: str = ""
    parsed_payload: Optional[Dict[str, Any]] = None
    client_id: str
    type: MessageType
    status: MessageStatus
    timestamp: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    created_by: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class AggregatedDataResponse(BaseModel):
    """One aggregation bucket."""
    client_id: str
    channel: str
    variable: str
    period: str
    timestamp: datetime
    sum: float
    count: int
    min: float
    max: float
    avg: float

    class Config:
        from_attributes = True


class ClientAggregationsResponse(BaseModel):
    """Aggregations keyed channel -> variable -> period -> timestamp."""
    client_id: str
    aggregations: Dict[str, Dict[str, Dict[str, Dict[str, AggregatedDataResponse]]]]

    class Config:
        from_attributes = True


class ErrorResponse(BaseModel):
    """Error envelope."""
    error: str
