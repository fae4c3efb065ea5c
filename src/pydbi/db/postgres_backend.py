"""PostgreSQL implementation of the Backend protocol.

Uses asyncpg on a single connection (one session per facade Connection).
Statements arrive with ``?`` or ``:name`` markers and are rewritten to
asyncpg's ``$N`` form at execute time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import asyncpg

from pydbi.db.backend import RawResult
from pydbi.errors import BindError, ConnectionError, StatementError

if TYPE_CHECKING:
    from pydbi.db.binding import BoundStatement

logger = logging.getLogger(__name__)

DRIVER = "pgsql"


def connect_kwargs(options: Mapping[str, str]) -> dict[str, Any]:
    """Map libdbi-style pgsql options onto asyncpg.connect() arguments."""
    kwargs: dict[str, Any] = {}
    if options.get("host"):
        kwargs["host"] = options["host"]
    if options.get("port"):
        try:
            kwargs["port"] = int(options["port"])
        except ValueError as exc:
            raise ConnectionError(f"Invalid port: {options['port']!r}") from exc
    if options.get("username"):
        kwargs["user"] = options["username"]
    if options.get("password"):
        kwargs["password"] = options["password"]
    if options.get("dbname"):
        kwargs["database"] = options["dbname"]
    if options.get("timeout"):
        try:
            kwargs["timeout"] = float(options["timeout"])
        except ValueError as exc:
            raise ConnectionError(f"Invalid timeout: {options['timeout']!r}") from exc
    return kwargs


def _render(statement: BoundStatement) -> tuple[str, list[Any]]:
    if statement.params is None:
        return statement.sql, []
    return statement.numbered()


class PostgresBackend:
    """PostgreSQL implementation of the Backend protocol.

    asyncpg auto-commits each statement outside an explicit transaction,
    which matches the facade's no-transaction model.
    """

    def __init__(self, conn: asyncpg.Connection) -> None:
        """Initialize with an open asyncpg connection."""
        self._conn = conn

    @property
    def driver(self) -> str:
        return DRIVER

    @classmethod
    async def create(cls, options: Mapping[str, str]) -> PostgresBackend:
        """Open a session from libdbi-style pgsql options."""
        kwargs = connect_kwargs(options)
        try:
            conn = await asyncpg.connect(**kwargs)
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            dbname = kwargs.get("database", "unknown dbname")
            raise ConnectionError(f"DB connection failed ({DRIVER}, {dbname}): {exc}") from exc
        logger.debug("Postgres session opened (%s)", kwargs.get("database", "default"))
        return cls(conn)

    async def execute(self, statement: BoundStatement) -> None:
        """Run a statement that produces no row set.

        Without parameters asyncpg uses the simple query protocol, so
        several ``;``-separated statements are allowed.
        """
        sql, args = _render(statement)
        try:
            await self._conn.execute(sql, *args)
        except asyncpg.PostgresError as exc:
            raise StatementError(str(exc)) from exc
        except asyncpg.exceptions.DataError as exc:
            raise BindError(str(exc)) from exc

    async def fetch(self, statement: BoundStatement) -> RawResult:
        """Run a statement and fetch every row it produces.

        The statement is prepared first so field names are known even when
        no rows come back.
        """
        sql, args = _render(statement)
        try:
            prepared = await self._conn.prepare(sql)
            records = await prepared.fetch(*args)
        except asyncpg.PostgresError as exc:
            raise StatementError(str(exc)) from exc
        except asyncpg.exceptions.DataError as exc:
            raise BindError(str(exc)) from exc
        fields = tuple(attr.name for attr in prepared.get_attributes())
        return RawResult(fields, [tuple(record.values()) for record in records])

    async def close(self) -> None:
        """Close the connection."""
        await self._conn.close()
