"""
List query parameter parsing.

Parses the ``range``, ``sort`` and ``filter`` query parameters sent by the
admin console (JSON encoded) and formats the ``Content-Range`` header.
"""
import json
from typing import Any, Dict, Tuple

from ..domain.exceptions import ValidationException

DEFAULT_RANGE = "[0,9]"
DEFAULT_SORT = '["timestamp","DESC"]'
DEFAULT_FILTER = "{}"


def _load_json(raw: str, name: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid {name} parameter")


def parse_range(raw: str) -> Tuple[int, int]:
    """
    Parse ``[start, end]`` into ``(skip, limit)``.

    Both bounds are inclusive, so ``[0, 9]`` is the first ten records.
    """
    value = _load_json(raw, "range")
    if (
        not isinstance(value, list)
        or len(value) != 2
        or not all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    ):
        raise ValidationException("Invalid range parameter")

    start, end = value
    if start < 0 or end < start:
        raise ValidationException("Invalid range parameter")

    return start, end - start + 1


def parse_sort(raw: str) -> Tuple[str, str]:
    """Parse ``["field", "ASC"|"DESC"]`` into ``(field, order)``."""
    value = _load_json(raw, "sort")
    if (
        not isinstance(value, list)
        or len(value) != 2
        or not all(isinstance(v, str) for v in value)
    ):
        raise ValidationException("Invalid sort parameter")
    return value[0], value[1]


def parse_filter(raw: str) -> Dict[str, Any]:
    """Parse a JSON object of field filters."""
    value = _load_json(raw, "filter")
    if not isinstance(value, dict):
        raise ValidationException("Invalid filter parameter")
    return value


def content_range(skip: int, count: int, total: int) -> str:
    """
    Format the Content-Range header for a page.

    An empty page yields an end below its start.
    """
    end = skip + count - 1
    return f"items {skip}-{end}/{total}"
