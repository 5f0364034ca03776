# Pydantic Schemas for message data

from .message_schemas import (
    MessageResponse,
    AggregatedDataResponse,
    ClientAggregationsResponse,
    ErrorResponse,
)

__all__ = [
    "MessageResponse",
    "AggregatedDataResponse",
    "ClientAggregationsResponse",
    "ErrorResponse",
]
