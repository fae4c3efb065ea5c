"""Placeholder scanning and bind-parameter validation.

Statements use ``?`` for positional and ``:name`` for named placeholders.
Markers inside string literals, quoted identifiers and comments are
ignored, as are ``::`` casts and dollar-quoted strings. SQLite-only
marker forms (``?NNN``, ``@name``, ``$name``) are rejected. Values are
always handed to the driver as bound parameters; statement text is never
rewritten with literal values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydbi.errors import BindError
from pydbi.models.params import BindParams, Named, Positional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placeholder:
    """One marker in statement text; ``name`` is None for ``?``."""

    start: int
    end: int
    name: str | None = None

    @property
    def is_named(self) -> bool:
        return self.name is not None


def _skip_quoted(sql: str, i: int, quote: str) -> int:
    """Return the index just past the quoted run starting at ``i``.

    A doubled quote character inside the run is an escaped quote.
    """
    n = len(sql)
    i += 1
    while i < n:
        if sql[i] == quote:
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return n


def _is_word(ch: str) -> bool:
    return ch != "" and ch.isascii() and (ch.isalnum() or ch in "_$")


def _starts_name(ch: str) -> bool:
    return ch != "" and ch.isascii() and (ch.isalpha() or ch == "_")


def _word_end(sql: str, j: int) -> int:
    n = len(sql)
    while j < n and sql[j].isascii() and (sql[j].isalnum() or sql[j] == "_"):
        j += 1
    return j


def _unsupported(marker: str) -> BindError:
    return BindError(f"Unsupported placeholder {marker!r}; use '?' or ':name'")


def _skip_dollar(sql: str, i: int) -> int:
    """Handle a ``$`` outside identifiers and return the index to resume at.

    ``$$ ... $$`` and ``$tag$ ... $tag$`` are dollar-quoted strings and are
    skipped whole. ``$name`` and ``$1`` are driver-native markers pydbi
    does not bind, so they raise BindError.
    """
    n = len(sql)
    nxt = sql[i + 1] if i + 1 < n else ""
    if nxt == "$":
        end = sql.find("$$", i + 2)
        return n if end < 0 else end + 2
    if _starts_name(nxt):
        j = _word_end(sql, i + 1)
        if j < n and sql[j] == "$":
            tag = sql[i : j + 1]
            end = sql.find(tag, j + 1)
            return n if end < 0 else end + len(tag)
        raise _unsupported(sql[i:j])
    if nxt != "" and nxt.isascii() and nxt.isdigit():
        raise _unsupported(sql[i : _word_end(sql, i + 1)])
    return i + 1


def scan_placeholders(sql: str) -> tuple[Placeholder, ...]:
    """Find ``?`` and ``:name`` markers outside literals and comments.

    SQLite's other marker forms (``?NNN``, ``@name``, ``$name``) raise
    BindError rather than being passed through unchecked.
    """
    found: list[Placeholder] = []
    n = len(sql)
    i = 0
    while i < n:
        ch = sql[i]
        prev = sql[i - 1] if i else ""
        if ch in ("'", '"', "`"):
            i = _skip_quoted(sql, i, ch)
        elif ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end < 0 else end + 1
        elif ch == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end < 0 else end + 2
        elif ch == "?":
            if i + 1 < n and sql[i + 1].isascii() and sql[i + 1].isdigit():
                raise _unsupported(sql[i : _word_end(sql, i + 1)])
            found.append(Placeholder(i, i + 1))
            i += 1
        elif ch == ":":
            if i + 1 < n and sql[i + 1] == ":":
                # ``::type`` cast
                i += 2
            elif i + 1 < n and sql[i + 1].isascii() and sql[i + 1].isalpha():
                j = _word_end(sql, i + 2)
                found.append(Placeholder(i, j, sql[i + 1 : j]))
                i = j
            else:
                i += 1
        elif ch == "$" and not _is_word(prev):
            i = _skip_dollar(sql, i)
        elif ch == "@" and not _is_word(prev) and _starts_name(sql[i + 1 : i + 2]):
            raise _unsupported(sql[i : _word_end(sql, i + 1)])
        else:
            i += 1
    return tuple(found)


@dataclass(frozen=True)
class BoundStatement:
    """Statement text checked against its bind parameters."""

    sql: str
    placeholders: tuple[Placeholder, ...] = ()
    params: BindParams | None = None

    @property
    def is_named(self) -> bool:
        return isinstance(self.params, Named)

    def driver_args(self) -> list[Any] | dict[str, Any]:
        """Arguments in the shape qmark/named drivers (sqlite3) expect."""
        if isinstance(self.params, Named):
            return dict(self.params.values)
        if isinstance(self.params, Positional):
            return list(self.params.values)
        return []

    def numbered(self) -> tuple[str, list[Any]]:
        """Rewrite markers as ``$1, $2, ...`` and order the arguments to match.

        A name used more than once keeps the number of its first use.
        """
        parts: list[str] = []
        args: list[Any] = []
        numbers: dict[str, int] = {}
        last = 0
        for index, ph in enumerate(self.placeholders):
            parts.append(self.sql[last : ph.start])
            if ph.name is None:
                args.append(self.params.values[index])  # type: ignore[union-attr]
                number = len(args)
            elif ph.name in numbers:
                number = numbers[ph.name]
            else:
                args.append(self.params.values[ph.name])  # type: ignore[union-attr]
                number = numbers[ph.name] = len(args)
            parts.append(f"${number}")
            last = ph.end
        parts.append(self.sql[last:])
        return "".join(parts), args


def bind(sql: str, params: BindParams | None = None) -> BoundStatement:
    """Check ``params`` against the markers in ``sql``.

    Raises BindError when the styles are mixed or mismatched, when the
    number of positional values differs from the number of ``?`` markers,
    or when a ``:name`` marker has no value.
    """
    placeholders = scan_placeholders(sql)
    positional = [ph for ph in placeholders if not ph.is_named]
    named = [ph for ph in placeholders if ph.is_named]

    if positional and named:
        raise BindError("Statement mixes '?' and ':name' placeholders")

    if params is None:
        if placeholders:
            raise BindError(f"Statement has {len(placeholders)} placeholder(s) but no parameters")
        return BoundStatement(sql)

    if isinstance(params, Positional):
        if named:
            raise BindError(
                f"Named placeholder ':{named[0].name}' cannot take positional parameters"
            )
        if len(params.values) != len(positional):
            raise BindError(
                f"Statement has {len(positional)} '?' placeholder(s) "
                f"but {len(params.values)} value(s) were supplied"
            )
    elif isinstance(params, Named):
        if positional:
            raise BindError("Positional '?' placeholders cannot take named parameters")
        missing = sorted({ph.name for ph in named if ph.name not in params.values})  # type: ignore[misc]
        if missing:
            raise BindError(f"No value supplied for placeholder(s): {', '.join(missing)}")
        extra = set(params.values) - {ph.name for ph in named}
        if extra:
            logger.debug("Ignoring unused named parameters: %s", ", ".join(sorted(extra)))
    else:
        raise BindError(f"Unsupported parameter object: {type(params).__name__}")

    return BoundStatement(sql, placeholders, params)
