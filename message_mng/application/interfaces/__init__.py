# Repository ports
from .repositories import MessageRepository, AggregationRepository

__all__ = [
    "MessageRepository",
    "AggregationRepository",
]
