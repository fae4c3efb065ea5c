"""SQLite implementation of the Backend protocol.

Thin wrapper around aiosqlite.Connection. SQLite understands both ``?``
and ``:name`` natively, so bound statements pass through unchanged.

Column values are typed from the declared column type through sqlite3
converters (``detect_types=PARSE_DECLTYPES``). Converters are registered
on the sqlite3 module when this module is imported.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from pydbi.db.backend import RawResult
from pydbi.errors import BindError, ConnectionError, StatementError

if TYPE_CHECKING:
    from pydbi.db.binding import BoundStatement

logger = logging.getLogger(__name__)

DRIVER = "sqlite3"
MEMORY = ":memory:"

_TRUE = frozenset({"1", "t", "true", "y", "yes", "on"})
_FALSE = frozenset({"0", "f", "false", "n", "no", "off"})


def _number(text: str) -> int | float | None:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def _stored(text: str) -> int | float | str:
    """The value as SQLite held it: a number if the text is one, else the text."""
    number = _number(text)
    return text if number is None else number


def _convert_bool(raw: bytes) -> bool | str | bytes:
    try:
        text = raw.decode()
    except UnicodeDecodeError:
        return raw
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    number = _number(text)
    if number is None:
        return text
    return bool(number)


def _convert_decimal(raw: bytes) -> Decimal | str | bytes:
    try:
        text = raw.decode()
    except UnicodeDecodeError:
        return raw
    try:
        return Decimal(text)
    except InvalidOperation:
        return text


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _convert_datetime(raw: bytes) -> datetime | int | float | str | bytes:
    """Parse ISO text or Unix epoch seconds into a naive UTC datetime."""
    try:
        text = raw.decode()
    except UnicodeDecodeError:
        return raw
    try:
        return _naive_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    number = _number(text)
    if number is None:
        return text
    try:
        return _naive_utc(datetime.fromtimestamp(number, tz=UTC))
    except (ValueError, OverflowError, OSError):
        return number


def _convert_date(raw: bytes) -> date | int | float | str | bytes:
    try:
        text = raw.decode()
    except UnicodeDecodeError:
        return raw
    try:
        return date.fromisoformat(text)
    except ValueError:
        return _stored(text)


# Keyed by the first word of the declared type, e.g. DECIMAL(6,3) -> DECIMAL
CONVERTERS = {
    "BOOLEAN": _convert_bool,
    "BOOL": _convert_bool,
    "DECIMAL": _convert_decimal,
    "NUMERIC": _convert_decimal,
    "DATETIME": _convert_datetime,
    "TIMESTAMP": _convert_datetime,
    "DATE": _convert_date,
}

for _name, _converter in CONVERTERS.items():
    sqlite3.register_converter(_name, _converter)


def _adapt(value: Any) -> Any:
    """Convert values sqlite3 cannot bind natively into text."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return value


def _statement_error(exc: sqlite3.Error, sql: str) -> Exception:
    binding = isinstance(exc, sqlite3.ProgrammingError | sqlite3.InterfaceError)
    if binding and "binding" in str(exc).lower():
        return BindError(str(exc))
    return StatementError(f"{exc} (in: {sql.strip()[:200]})")


def resolve_path(options: Mapping[str, str]) -> str:
    """Build the database path from ``dbname`` and ``sqlite3_dbdir``."""
    dbname = options.get("dbname") or MEMORY
    if dbname == MEMORY:
        return MEMORY
    dbdir = options.get("sqlite3_dbdir") or "."
    return str(Path(dbdir).expanduser() / dbname)


def resolve_timeout(options: Mapping[str, str]) -> float:
    """Busy timeout in seconds from ``sqlite3_timeout`` (milliseconds)."""
    raw = options.get("sqlite3_timeout")
    if raw is None or raw == "":
        return 5.0
    try:
        millis = float(raw)
    except ValueError as exc:
        raise ConnectionError(f"Invalid sqlite3_timeout: {raw!r}") from exc
    if millis < 0:
        raise ConnectionError(f"Invalid sqlite3_timeout: {raw!r}")
    return millis / 1000


class SQLiteBackend:
    """SQLite implementation of the Backend protocol.

    The session runs in autocommit mode (``isolation_level=None``), so each
    statement persists on its own and no commit step is needed.
    """

    def __init__(self, conn: aiosqlite.Connection, path: str = MEMORY) -> None:
        """Initialize with an open aiosqlite connection."""
        self._conn = conn
        self.path = path

    @property
    def driver(self) -> str:
        return DRIVER

    @classmethod
    async def create(cls, options: Mapping[str, str]) -> SQLiteBackend:
        """Open a session from libdbi-style sqlite3 options."""
        path = resolve_path(options)
        timeout = resolve_timeout(options)
        try:
            conn = await aiosqlite.connect(
                path,
                timeout=timeout,
                detect_types=sqlite3.PARSE_DECLTYPES,
                isolation_level=None,
            )
        except sqlite3.Error as exc:
            raise ConnectionError(f"DB connection failed ({DRIVER}, {path}): {exc}") from exc
        logger.debug("SQLite session opened at %s", path)
        return cls(conn, path)

    async def execute(self, statement: BoundStatement) -> None:
        """Run a statement that produces no row set.

        Without parameters the text runs as a script, so several
        ``;``-separated statements are allowed.
        """
        try:
            if statement.params is None:
                await self._conn.executescript(statement.sql)
            else:
                await self._conn.execute(statement.sql, self._args(statement))
        except sqlite3.Error as exc:
            raise _statement_error(exc, statement.sql) from exc

    async def fetch(self, statement: BoundStatement) -> RawResult:
        """Run a statement and fetch every row it produces."""
        try:
            cursor = await self._conn.execute(statement.sql, self._args(statement))
            try:
                rows = await cursor.fetchall()
                description = cursor.description or ()
            finally:
                await cursor.close()
        except sqlite3.Error as exc:
            raise _statement_error(exc, statement.sql) from exc
        fields = tuple(col[0] for col in description)
        return RawResult(fields, [tuple(row) for row in rows])

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()

    @staticmethod
    def _args(statement: BoundStatement) -> list[Any] | dict[str, Any]:
        args = statement.driver_args()
        if isinstance(args, dict):
            return {key: _adapt(value) for key, value in args.items()}
        return [_adapt(value) for value in args]
