"""
Test data factories for the Message Management API.

Provides factory classes for generating stored documents.
"""
from .message_factory import BASE_TIME, AggregationDocumentFactory, MessageDocumentFactory

__all__ = [
    "BASE_TIME",
    "MessageDocumentFactory",
    "AggregationDocumentFactory",
]
