"""Database backends, bind handling and the Connection facade."""

from pydbi.db.backend import Backend, RawResult
from pydbi.db.binding import BoundStatement, Placeholder, bind, scan_placeholders
from pydbi.db.connection import Connection, available_drivers, open_connection, register_driver
from pydbi.db.sqlite_backend import SQLiteBackend

try:
    from pydbi.db.postgres_backend import PostgresBackend
except ImportError:
    PostgresBackend = None  # type: ignore[assignment,misc]

__all__ = [
    "Backend",
    "BoundStatement",
    "Connection",
    "Placeholder",
    "PostgresBackend",
    "RawResult",
    "SQLiteBackend",
    "available_drivers",
    "bind",
    "open_connection",
    "register_driver",
    "scan_placeholders",
]
