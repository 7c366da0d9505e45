"""
Database utilities for ytfeedback.
"""

from datetime import datetime
from typing import Any

from ytfeedback.core.utils.json_utils import decode_json_text

# Text columns that hold serialized JSON
JSON_TEXT_COLUMNS: tuple[str, ...] = ("accuracy_feedback", "ability_feedback", "evaluation_json")


def convert_row_to_dict(row) -> dict[str, Any]:
    """
    Convert a database row to a JSON-ready dictionary.

    Timestamps become ISO-8601 strings and feedback/evaluation JSON text is
    decoded back to objects; text that is not a JSON object or array is left
    as it was stored.

    Args:
        row: Database row object with _mapping attribute

    Returns:
        Dictionary keyed by column name
    """
    data = dict(row._mapping)

    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
        elif key in JSON_TEXT_COLUMNS:
            data[key] = decode_json_text(value)

    return data
