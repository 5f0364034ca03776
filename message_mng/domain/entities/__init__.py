"""
Domain entities for the Message Management API.
"""
from .message import (
    MessageType,
    MessageStatus,
    Message,
)
from .aggregation import (
    AggregatedData,
    ClientAggregations,
)
from .access import (
    RequestContext,
    IdentityUser,
    UserClients,
    AccessGrant,
)

__all__ = [
    # Message
    "MessageType",
    "MessageStatus",
    "Message",
    # Aggregation
    "AggregatedData",
    "ClientAggregations",
    # Access
    "RequestContext",
    "IdentityUser",
    "UserClients",
    "AccessGrant",
]
