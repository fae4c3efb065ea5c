"""Connection management: driver registry and the Connection facade."""

from __future__ import annotations

import logging
import weakref
from collections.abc import Awaitable, Callable, Mapping
from types import TracebackType
from typing import Any

from pydbi.db.backend import Backend
from pydbi.db.binding import bind
from pydbi.db.sqlite_backend import SQLiteBackend
from pydbi.errors import ConnectionError
from pydbi.models.params import BindParams
from pydbi.result import ResultSet

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Mapping[str, str]], Awaitable[Backend]]

_drivers: dict[str, BackendFactory] = {}
_aliases: dict[str, str] = {}


def register_driver(name: str, factory: BackendFactory, *aliases: str) -> None:
    """Register a backend factory under a driver identifier and its aliases."""
    key = name.lower()
    _drivers[key] = factory
    for alias in aliases:
        _aliases[alias.lower()] = key


def available_drivers() -> list[str]:
    """Return the canonical names of all registered drivers."""
    return sorted(_drivers)


def _resolve_driver(driver: str) -> tuple[str, BackendFactory]:
    key = driver.strip().lower()
    key = _aliases.get(key, key)
    factory = _drivers.get(key)
    if factory is None:
        raise ConnectionError(
            f"Unable to load DBI driver {driver!r} (available: {', '.join(available_drivers())})"
        )
    return key, factory


register_driver("sqlite3", SQLiteBackend.create, "sqlite")

try:
    from pydbi.db.postgres_backend import PostgresBackend
except ImportError:
    logger.debug("asyncpg not installed, pgsql driver unavailable")
else:
    register_driver("pgsql", PostgresBackend.create, "postgresql", "postgres")


class Connection:
    """One open database session.

    Owned by the caller and released by ``close()``. After close, every
    operation on the connection or on a result set it produced raises
    ConnectionError.
    """

    def __init__(self, backend: Backend, options: Mapping[str, str] | None = None) -> None:
        """Initialize with an open backend session."""
        self._backend: Backend | None = backend
        self._driver = backend.driver
        self._options = dict(options or {})
        self._results: weakref.WeakSet[ResultSet] = weakref.WeakSet()

    @property
    def driver(self) -> str:
        return self._driver

    @property
    def options(self) -> dict[str, str]:
        return dict(self._options)

    @property
    def closed(self) -> bool:
        return self._backend is None

    def _require_backend(self) -> Backend:
        if self._backend is None:
            raise ConnectionError(f"Connection ({self._driver}) is closed")
        return self._backend

    async def exec(self, sql: str, params: BindParams | None = None) -> None:
        """Run a statement that returns no row set (DDL or DML)."""
        backend = self._require_backend()
        statement = bind(sql, params)
        logger.debug("exec: %s", sql.strip())
        await backend.execute(statement)

    async def query(self, sql: str, params: BindParams | None = None) -> ResultSet:
        """Run a statement and return its rows, positioned before the first row."""
        backend = self._require_backend()
        statement = bind(sql, params)
        logger.debug("query: %s", sql.strip())
        raw = await backend.fetch(statement)
        result = ResultSet(raw)
        self._results.add(result)
        return result

    async def close(self) -> None:
        """Release the session and invalidate its result sets."""
        backend = self._require_backend()
        self._backend = None
        for result in list(self._results):
            result.invalidate()
        self._results.clear()
        try:
            await backend.close()
        finally:
            logger.info("Closed %s connection", self._driver)

    async def __aenter__(self) -> Connection:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.closed:
            await self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Connection driver={self._driver} {state}>"


async def open_connection(driver: str, options: Mapping[str, Any] | None = None) -> Connection:
    """Open a connection through the backend registered as ``driver``.

    Option values are passed to the backend as strings; ``None`` values
    are dropped.
    """
    name, factory = _resolve_driver(driver)
    str_options = {str(k): str(v) for k, v in (options or {}).items() if v is not None}
    backend = await factory(str_options)
    logger.info("Opened %s connection", name)
    return Connection(backend, str_options)
