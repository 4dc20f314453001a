"""Result formatting for tool responses."""

import base64
import json
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any


def _json_default(value: Any) -> Any:
    """Convert driver scalar types that json cannot encode."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def to_json(payload: Any) -> str:
    """Serialize a tool payload as indented JSON."""
    return json.dumps(payload, indent=2, default=_json_default, ensure_ascii=False)


def format_query_results(results: list[dict[str, Any]], query: str) -> str:
    """Format rows returned by ``execute_query``.

    Args:
        results: Rows as column -> value dicts
        query: The query that was actually executed (after TOP injection)

    Returns:
        JSON object with the query, the row count and the rows
    """
    return to_json({"query": query, "rowCount": len(results), "data": results})
