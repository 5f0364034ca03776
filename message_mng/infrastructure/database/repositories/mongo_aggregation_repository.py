"""
MongoDB implementation of the aggregation repository.
"""
import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase

from ....application.interfaces.repositories import AggregationRepository
from ....domain.entities.aggregation import AggregatedData
from ..documents import aggregation_from_document

logger = logging.getLogger(__name__)


class MongoAggregationRepository(AggregationRepository):
    """Aggregation buckets stored in a MongoDB collection."""

    def __init__(self, database: AsyncDatabase, collection_name: str = "aggregations"):
        self._collection = database[collection_name]

    async def find_by_client_id(
        self,
        client_id: str,
        period: Optional[str] = None,
    ) -> List[AggregatedData]:
        mongo_filter: Dict[str, Any] = {"client_id": client_id}
        if period:
            mongo_filter["period"] = period

        cursor = self._collection.find(mongo_filter).sort("timestamp", ASCENDING)
        buckets = [aggregation_from_document(doc) async for doc in cursor]

        logger.debug(f"Loaded {len(buckets)} aggregation buckets for {client_id}")
        return buckets
