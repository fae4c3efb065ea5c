"""Driver-agnostic database access: open, exec, query, close."""

from pydbi.db.connection import Connection, available_drivers, open_connection, register_driver
from pydbi.errors import BindError, ConnectionError, CursorError, DBIError, StatementError
from pydbi.models.params import BindParams, Named, Positional, named, positional
from pydbi.result import ResultSet

open = open_connection  # noqa: A001

__version__ = "0.1.0"

__all__ = [
    "BindError",
    "BindParams",
    "Connection",
    "ConnectionError",
    "CursorError",
    "DBIError",
    "Named",
    "Positional",
    "ResultSet",
    "StatementError",
    "available_drivers",
    "named",
    "open",
    "open_connection",
    "positional",
    "register_driver",
]
