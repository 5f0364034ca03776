# Application Services - message queries and access resolution

from .access_resolver import AccessResolver
from .message_service import MessageService

__all__ = [
    "AccessResolver",
    "MessageService",
]
