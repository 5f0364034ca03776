"""
Firestore implementation of the aggregation repository.
"""
import logging
from typing import List, Optional

from firebase_admin import firestore

from ....application.interfaces.repositories import AggregationRepository
from ....domain.entities.aggregation import AggregatedData
from ..documents import aggregation_from_document

logger = logging.getLogger(__name__)


class FirestoreAggregationRepository(AggregationRepository):
    """Aggregation buckets stored in a Firestore collection."""

    def __init__(self, client: "firestore.AsyncClient", collection_name: str = "aggregations"):
        self._collection = client.collection(collection_name)

    async def find_by_client_id(
        self,
        client_id: str,
        period: Optional[str] = None,
    ) -> List[AggregatedData]:
        native = self._collection.where(filter=firestore.FieldFilter("client_id", "==", client_id))
        if period:
            native = native.where(filter=firestore.FieldFilter("period", "==", period))
        native = native.order_by("timestamp", direction=firestore.Query.ASCENDING)

        buckets = [
            aggregation_from_document(snapshot.to_dict() or {})
            async for snapshot in native.stream()
        ]

        logger.debug(f"Loaded {len(buckets)} aggregation buckets for {client_id}")
        return buckets
