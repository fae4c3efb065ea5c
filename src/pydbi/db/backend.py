"""Backend protocol: a thin abstraction over one async driver session.

The facade programs against this protocol. Each backend (SQLite,
Postgres, ...) wraps its driver, translates driver exceptions into
``pydbi.errors`` types and renders bound statements in its own
placeholder dialect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pydbi.db.binding import BoundStatement


@dataclass(frozen=True)
class RawResult:
    """A fully fetched row set: field names plus row tuples."""

    fields: tuple[str, ...]
    rows: list[tuple[Any, ...]] = field(default_factory=list)


@runtime_checkable
class Backend(Protocol):
    """One open session on a database driver."""

    @property
    def driver(self) -> str:
        """Canonical driver identifier, e.g. ``sqlite3``."""
        ...

    async def execute(self, statement: BoundStatement) -> None:
        """Run a statement that produces no row set."""
        ...

    async def fetch(self, statement: BoundStatement) -> RawResult:
        """Run a statement and fetch every row it produces."""
        ...

    async def close(self) -> None:
        """Close the session."""
        ...
