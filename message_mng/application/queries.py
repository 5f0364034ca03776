"""
Store-neutral list query.

Normalises the generic filter/sort/range shape once so that every
repository applies the same defaults before translating it into its own
native query API.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..domain.exceptions import ValidationException

DEFAULT_SORT_FIELD = "timestamp"
ASCENDING_TOKEN = "ASC"

# Filter keys that address the store-assigned identifier
ID_FILTER_KEYS = ("_id", "id")

CLIENT_ID_FIELD = "client_id"


def _validate_filters(filters: Dict[str, Any]) -> None:
    """
    Reject filters that are not plain field equality.

    Operator keys and structured values would be interpreted by Mongo as
    query operators while Firestore compares them literally.
    """
    for key, value in filters.items():
        if not isinstance(key, str) or not key or key.startswith("$"):
            raise ValidationException(f"invalid filter key: {key!r}")
        if isinstance(value, (dict, list)):
            raise ValidationException(f"invalid filter value for {key}")


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def from_token(cls, token: Optional[str]) -> "SortDirection":
        """Only the exact token ``ASC`` sorts ascending."""
        return cls.ASCENDING if token == ASCENDING_TOKEN else cls.DESCENDING


@dataclass(frozen=True)
class ListQuery:
    """
    A filtered, sorted, paginated message query.

    Attributes:
        filters: Field equality filters; identifier keys hold raw strings.
        sort_field: Field to order by.
        direction: Sort direction.
        skip: Zero-based number of records to skip.
        limit: Page size.
        client_ids: When set, only messages whose client id is one of
            these values match.
    """
    filters: Dict[str, Any] = field(default_factory=dict)
    sort_field: str = DEFAULT_SORT_FIELD
    direction: SortDirection = SortDirection.DESCENDING
    skip: int = 0
    limit: int = 10
    client_ids: Optional[Tuple[str, ...]] = None

    @classmethod
    def build(
        cls,
        filters: Optional[Dict[str, Any]] = None,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
        client_ids: Optional[Iterable[str]] = None,
    ) -> "ListQuery":
        """
        Build a query, applying the sort defaults.

        A ``client_id`` filter is intersected with ``client_ids``; the
        result may be empty, in which case nothing matches.

        Raises:
            ValidationException: On a negative skip, a non-positive limit,
                an operator key or a structured filter value.
        """
        if skip < 0:
            raise ValidationException("skip must not be negative")
        if limit <= 0:
            raise ValidationException("limit must be positive")

        filters = dict(filters or {})
        _validate_filters(filters)

        restricted = None
        if client_ids is not None:
            permitted = set(client_ids)
            if CLIENT_ID_FIELD in filters:
                # A requested client narrows the restriction instead of replacing it
                permitted &= {filters.pop(CLIENT_ID_FIELD)}
            restricted = tuple(sorted(permitted))

        return cls(
            filters=filters,
            sort_field=sort_field or DEFAULT_SORT_FIELD,
            direction=SortDirection.from_token(sort_order),
            skip=skip,
            limit=limit,
            client_ids=restricted,
        )

    @property
    def ascending(self) -> bool:
        return self.direction is SortDirection.ASCENDING


def id_filter_value(key: str, value: Any) -> str:
    """
    Return the raw identifier carried by an identifier filter.

    Raises:
        ValidationException: If the value is not a string.
    """
    if not isinstance(value, str):
        raise ValidationException(f"invalid filter value for {key}")
    return value
