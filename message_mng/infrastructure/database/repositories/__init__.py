# Message Repository Implementations

from .mongo_message_repository import MongoMessageRepository
from .mongo_aggregation_repository import MongoAggregationRepository
from .firestore_message_repository import FirestoreMessageRepository
from .firestore_aggregation_repository import FirestoreAggregationRepository
from .factory import Repositories, RepositoryFactory

__all__ = [
    "MongoMessageRepository",
    "MongoAggregationRepository",
    "FirestoreMessageRepository",
    "FirestoreAggregationRepository",
    "Repositories",
    "RepositoryFactory",
]
