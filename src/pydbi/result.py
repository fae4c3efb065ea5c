"""Result sets: cursor-style and bulk access to a fetched row set."""

from __future__ import annotations

from typing import Any

from pydbi.db.backend import RawResult
from pydbi.errors import ConnectionError, CursorError

# Cursor positions outside the row range
_BEFORE_FIRST = -1


class ResultSet:
    """Rows returned by one query.

    The cursor moves one way: before the first row, on a row, then
    exhausted. ``next()`` advances it and ``get()`` reads the current row.
    ``to_array()`` drains whatever is left in one call.

    Every row is fetched before the result set is handed out, so nothing
    here touches the database. The owning connection invalidates its result
    sets when it closes.
    """

    def __init__(self, raw: RawResult) -> None:
        """Initialize with a fully fetched row set."""
        self._fields = raw.fields
        self._rows = raw.rows
        self._index = _BEFORE_FIRST
        self._exhausted = False
        self._valid = True
        self._field_index = {name: i for i, name in enumerate(raw.fields)}

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names in ordinal order."""
        self._check_valid()
        return self._fields

    def num_rows(self) -> int:
        """Total number of rows, independent of the cursor."""
        self._check_valid()
        return len(self._rows)

    def num_fields(self) -> int:
        """Number of fields per row."""
        self._check_valid()
        return len(self._fields)

    def next(self) -> bool:
        """Advance to the next row. Returns False once the rows run out."""
        self._check_valid()
        if self._exhausted:
            return False
        self._index += 1
        if self._index >= len(self._rows):
            self._exhausted = True
            return False
        return True

    def get(self, field: int | str) -> Any:
        """Return a value from the current row by zero-based ordinal or field name."""
        self._check_valid()
        if self._index == _BEFORE_FIRST:
            raise CursorError("get() called before next()")
        if self._exhausted:
            raise CursorError("get() called after the last row")
        row = self._rows[self._index]
        if isinstance(field, str):
            if field not in self._field_index:
                raise KeyError(field)
            return row[self._field_index[field]]
        if not 0 <= field < len(self._fields):
            raise IndexError(f"field index {field} out of range (0..{len(self._fields) - 1})")
        return row[field]

    def to_array(self, as_objects: bool = False) -> list[Any]:
        """Materialize the remaining rows and exhaust the cursor.

        Rows run from the current cursor position (the current row included)
        to the end. With ``as_objects`` each row is a dict keyed by field
        name, otherwise a list of values in field order.
        """
        self._check_valid()
        if self._exhausted:
            return []
        start = max(self._index, 0)
        remaining = self._rows[start:]
        if as_objects:
            out: list[Any] = [dict(zip(self._fields, row, strict=True)) for row in remaining]
        else:
            out = [list(row) for row in remaining]
        self._index = len(self._rows)
        self._exhausted = True
        return out

    def invalidate(self) -> None:
        """Mark the result set unusable (its connection closed)."""
        self._valid = False
        self._rows = []

    def _check_valid(self) -> None:
        if not self._valid:
            raise ConnectionError("Result set belongs to a closed connection")

    def __repr__(self) -> str:
        state = "closed" if not self._valid else f"{len(self._rows)} rows"
        return f"<ResultSet fields={list(self._fields)} {state}>"
