"""JSON utilities for ytfeedback."""

import json
from datetime import datetime
from typing import Any


def json_serializer(obj: Any) -> str:
    """JSON serializer for objects not serializable by default json code.

    Args:
        obj: Object to serialize

    Returns:
        String representation of the object

    Raises:
        TypeError: If object type is not supported
    """
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def to_json_text(value: Any) -> str:
    """Serialize *value* to compact UTF-8 JSON text for storage.

    Uses the same compact separators browsers emit for ``JSON.stringify`` so
    rows written by this service match rows written by the web frontend.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=json_serializer)


def decode_json_text(value: Any) -> Any:
    """Decode stored JSON object/array text, leaving any other text untouched."""
    if not isinstance(value, str):
        return value
    try:
        decoded = json.loads(value)
    except ValueError:
        return value
    return decoded if isinstance(decoded, (dict, list)) else value
