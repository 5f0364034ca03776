"""
Aggregation entities.

Aggregates are produced by the ingestion side per client, channel,
variable and period; this service only reads them.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List


@dataclass
class AggregatedData:
    """Aggregation result for one client/channel/variable/period bucket."""
    client_id: str
    channel: str
    variable: str
    period: str
    timestamp: datetime
    sum: float = 0.0
    count: int = 0
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0


# channel -> variable -> period -> ISO timestamp -> data
AggregationTree = Dict[str, Dict[str, Dict[str, Dict[str, AggregatedData]]]]


@dataclass
class ClientAggregations:
    """All aggregation buckets of one client, nested for graphing."""
    client_id: str
    aggregations: AggregationTree = field(default_factory=dict)

    @classmethod
    def from_buckets(cls, client_id: str, buckets: List[AggregatedData]) -> "ClientAggregations":
        """Group flat buckets into the channel/variable/period/timestamp tree."""
        tree: AggregationTree = {}
        for bucket in buckets:
            by_period = (
                tree.setdefault(bucket.channel, {})
                .setdefault(bucket.variable, {})
                .setdefault(bucket.period, {})
            )
            by_period[bucket.timestamp.isoformat()] = bucket
        return cls(client_id=client_id, aggregations=tree)
