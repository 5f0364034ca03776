"""
API routes.

Includes message queries and device aggregations.
"""
from .messages import router as messages_router

__all__ = [
    "messages_router",
]
