"""
Serialization Utilities

Helpers for turning domain objects into JSON-compatible structures and for
converting timestamps to and from their fixed ISO-8601 representation.
Date fields are always converted explicitly; nothing relies on a string
being coerced into a datetime implicitly.
"""

import json
import math
import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from dataclasses import is_dataclass, fields


def datetime_to_iso(value: Optional[datetime.datetime]) -> Optional[str]:
    """Convert a datetime to its ISO-8601 string (None passes through)."""
    if value is None:
        return None
    return value.isoformat()


def parse_datetime(value: Any) -> Optional[datetime.datetime]:
    """
    Parse a stored timestamp back into a datetime.

    Accepts ISO-8601 strings (a trailing ``Z`` is treated as UTC), epoch
    milliseconds, or an existing datetime. Results are always naive local
    time, the same convention as the injected clocks, so parsed values can be
    compared with ``clock()`` directly.

    Args:
        value: Serialized timestamp

    Returns:
        Parsed datetime, or None for empty values

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.datetime.fromtimestamp(value / 1000.0)
    elif isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.datetime.fromisoformat(text)
    else:
        raise ValueError(f"Cannot parse timestamp from {type(value).__name__}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def serialize(obj: Any, exclude_none: bool = False) -> Any:
    """
    Serialize an object into JSON-compatible Python structures.

    Handles dataclasses (preferring their ``to_dict``), enums, datetimes,
    sets, tuples and non-finite floats (rendered as None, since JSON has no
    infinity).

    Args:
        obj: The object to serialize
        exclude_none: Whether to drop None values from mappings

    Returns:
        Serialized structure
    """
    if obj is None or isinstance(obj, (str, bool, int)):
        return obj

    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None

    if isinstance(obj, datetime.datetime):
        return obj.isoformat()

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (list, tuple, set, frozenset)):
        items = sorted(obj) if isinstance(obj, (set, frozenset)) else obj
        return [serialize(item, exclude_none) for item in items]

    if isinstance(obj, dict):
        result: Dict[str, Any] = {}
        for key, value in obj.items():
            if exclude_none and value is None:
                continue
            result[str(serialize(key))] = serialize(value, exclude_none)
        return result

    if hasattr(obj, 'to_dict') and callable(getattr(obj, 'to_dict')):
        return serialize(obj.to_dict(), exclude_none)

    if is_dataclass(obj):
        return serialize(
            {f.name: getattr(obj, f.name) for f in fields(obj)},
            exclude_none
        )

    return str(obj)


def to_json(obj: Any, pretty: bool = False, exclude_none: bool = False) -> str:
    """
    Serialize an object to a JSON string.

    Args:
        obj: The object to serialize
        pretty: Whether to format the JSON with indentation
        exclude_none: Whether to exclude None values

    Returns:
        JSON string representation
    """
    indent = 2 if pretty else None
    return json.dumps(serialize(obj, exclude_none), indent=indent, ensure_ascii=False)


def mean(values: List[float], default: float = 0.0) -> float:
    """Arithmetic mean that returns ``default`` for an empty list."""
    if not values:
        return default
    return sum(values) / len(values)
