"""
Repository factory.

Builds the repositories for the configured provider once, at start-up.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ....application.interfaces.repositories import AggregationRepository, MessageRepository
from ....config import DatabaseProvider, DatabaseSettings, parse_provider
from .firestore_aggregation_repository import FirestoreAggregationRepository
from .firestore_message_repository import FirestoreMessageRepository
from .mongo_aggregation_repository import MongoAggregationRepository
from .mongo_message_repository import MongoMessageRepository

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """Repositories bound to one backing store."""
    messages: MessageRepository
    aggregations: AggregationRepository


class RepositoryFactory:
    """Creates repositories for the configured database provider."""

    def __init__(self, settings: DatabaseSettings):
        self._settings = settings
        self._provider = parse_provider(settings.provider)

    @property
    def provider(self) -> DatabaseProvider:
        return self._provider

    def create(self, mongo_database=None, firestore_client=None) -> Repositories:
        """
        Create the repositories for the configured provider.

        Args:
            mongo_database: Async Mongo database, required for mongo.
            firestore_client: Async Firestore client, required for firestore.

        Raises:
            ValueError: If the client for the configured provider is missing.
        """
        messages_collection = self._settings.messages_collection
        aggregations_collection = self._settings.aggregations_collection

        if self._provider is DatabaseProvider.MONGO:
            if mongo_database is None:
                raise ValueError("MongoDB client is required when using MongoDB provider")
            repositories = Repositories(
                messages=MongoMessageRepository(mongo_database, messages_collection),
                aggregations=MongoAggregationRepository(mongo_database, aggregations_collection),
            )
        elif self._provider is DatabaseProvider.FIRESTORE:
            if firestore_client is None:
                raise ValueError("Firestore client is required when using Firestore provider")
            repositories = Repositories(
                messages=FirestoreMessageRepository(firestore_client, messages_collection),
                aggregations=FirestoreAggregationRepository(firestore_client, aggregations_collection),
            )
        else:
            raise ValueError(f"unsupported database provider: {self._provider}")

        logger.info(f"Message repositories created for provider '{self._provider.value}'")
        return repositories
