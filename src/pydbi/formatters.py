"""JSON output helpers for result rows."""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any


def to_jsonable(value: Any) -> Any:
    """Convert a field value to something json.dumps accepts."""
    if isinstance(value, Decimal):
        if not value.is_finite():
            return str(value)
        exponent = value.as_tuple().exponent
        return int(value) if isinstance(exponent, int) and exponent >= 0 else float(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).hex()
    return value


def format_row(row: list[Any] | dict[str, Any], indent: int | None = None) -> str:
    """Render one positional or named row as JSON."""
    if isinstance(row, dict):
        data: Any = {key: to_jsonable(value) for key, value in row.items()}
    else:
        data = [to_jsonable(value) for value in row]
    return json.dumps(data, indent=indent)
