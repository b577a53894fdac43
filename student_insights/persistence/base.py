"""Row conversion helpers shared by repositories."""

import json
import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any


def utc_now() -> datetime:
    """Timestamp for rows written by this service; patched in tests."""
    return datetime.now(UTC)


def _json_safe(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert a SQLAlchemy row to a dict, casting asyncpg types to JSON-safe primitives.

    asyncpg returns:
    - UUID columns as uuid.UUID objects → convert to str
    - TIMESTAMPTZ/DATE columns as datetime/date objects → convert to ISO-8601 str
    - NUMERIC columns as Decimal → convert to float

    Everything leaving the persistence boundary is therefore JSON-serializable,
    which matters here because assembled rows are embedded verbatim in the
    generation prompt and stored as the insight's input payload.
    """
    return {k: _json_safe(v) for k, v in row._mapping.items()}


def as_json(value: Any) -> Any:
    """Decode JSON columns that arrive as text (driver without a jsonb codec)."""
    if isinstance(value, str):
        return json.loads(value)
    return value
