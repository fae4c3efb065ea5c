"""Command-line entry point: the DBI example program plus ad-hoc queries.

Usage:
    python -m pydbi                      # run the demo against test.sqlite3
    python -m pydbi demo --dbdir /tmp
    python -m pydbi query "SELECT * FROM test WHERE bar > ?" --param 5
    python -m pydbi query "SELECT * FROM test WHERE foo = :foo" --named foo=hello --objects

Connection settings default to PYDBI_DRIVER, PYDBI_DBNAME and PYDBI_DBDIR.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from pydbi.config import get_connect_options, get_driver, get_log_level
from pydbi.db.connection import Connection, open_connection
from pydbi.errors import DBIError
from pydbi.formatters import format_row
from pydbi.models.params import BindParams, Named, Positional

logger = logging.getLogger(__name__)

CREATE_TEST_TABLE = """
CREATE TABLE IF NOT EXISTS test(
    foo TEXT,
    bar INTEGER,
    whizz DECIMAL(6,3),
    bang BOOLEAN,
    woop DATETIME
);
"""

SEED_TEST_ROWS = """
INSERT INTO test (foo, bar, whizz, bang, woop) VALUES
    ('hello', 42, 3.141, 1, datetime('now','-1 day','localtime')),
    ('world', -7, 2.718, 0, datetime('2024-04-12 12:30:45.789')),
    ('quickjs', 1337, 1.618, 1, datetime('now'))
;
"""


async def prepare_test_table(conn: Connection) -> int:
    """Create the ``test`` table if needed and seed it when empty.

    Returns the number of rows in the table afterwards.
    """
    await conn.exec(CREATE_TEST_TABLE)
    rows = (await conn.query("SELECT COUNT(*) AS n FROM test")).to_array(True)
    if rows[0]["n"] == 0:
        logger.info("Seeding empty test table")
        await conn.exec(SEED_TEST_ROWS)
        rows = (await conn.query("SELECT COUNT(*) AS n FROM test")).to_array(True)
    return rows[0]["n"]


async def run_demo(conn: Connection) -> None:
    """Show the three ways of binding parameters and reading results."""
    await prepare_test_table(conn)

    print("=== manual output, array bind ===")
    res = await conn.query("SELECT * FROM test WHERE bar > ?", Positional(values=[5]))
    num_fields = res.num_fields()
    print(f"Got {res.num_rows()} rows, and {num_fields} fields.")
    while res.next():
        row = [res.get(i) for i in range(num_fields)]
        print(format_row(row, indent=2))

    print("=== array output, dict bind ===")
    res = await conn.query(
        "SELECT foo, bar, whizz, bang, woop FROM test WHERE whizz >= :whizz",
        Named(values={"whizz": 2.0}),
    )
    for row in res.to_array():
        print(format_row(row))

    print("=== dict output, naked bind ===")
    res = await conn.query("SELECT * FROM test")
    for row in res.to_array(True):
        print(format_row(row))


def _parse_value(text: str) -> Any:
    """Interpret a command-line value as JSON when possible, else as text."""
    try:
        return json.loads(text)
    except ValueError:
        return text


def build_params(values: list[str] | None, pairs: list[str] | None) -> BindParams | None:
    """Turn ``--param`` / ``--named`` arguments into bind params."""
    if values and pairs:
        raise SystemExit("--param and --named cannot be combined")
    if values:
        return Positional(values=[_parse_value(v) for v in values])
    if pairs:
        named: dict[str, Any] = {}
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if not sep or not key:
                raise SystemExit(f"--named expects KEY=VALUE, got {pair!r}")
            named[key] = _parse_value(value)
        return Named(values=named)
    return None


async def run_query(conn: Connection, sql: str, params: BindParams | None, objects: bool) -> int:
    """Run one query and print each row as JSON. Returns the row count."""
    res = await conn.query(sql, params)
    rows = res.to_array(objects)
    for row in rows:
        print(format_row(row))
    return len(rows)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pydbi", description="DBI example and query runner")
    parser.add_argument("--driver", default=None, help="Driver identifier (default: PYDBI_DRIVER)")
    parser.add_argument("--dbname", default=None, help="Database name (default: PYDBI_DBNAME)")
    parser.add_argument("--dbdir", default=None, help="SQLite directory (default: PYDBI_DBDIR)")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("demo", help="Create, seed and query the test table")
    query = sub.add_parser("query", help="Run one query and print rows as JSON")
    query.add_argument("sql", help="Statement text")
    query.add_argument("--param", action="append", help="Positional value for '?'")
    query.add_argument("--named", action="append", help="KEY=VALUE for ':KEY'")
    query.add_argument("--objects", action="store_true", help="Print rows as objects")
    return parser


async def _run(args: argparse.Namespace) -> int:
    driver = args.driver or get_driver()
    options = get_connect_options(driver, args.dbname, args.dbdir)
    params = build_params(args.param, args.named) if args.command == "query" else None
    conn = await open_connection(driver, options)
    try:
        if args.command == "query":
            await run_query(conn, args.sql, params, args.objects)
        else:
            await run_demo(conn)
    finally:
        await conn.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the pydbi command line."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, get_log_level().upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    try:
        return asyncio.run(_run(args))
    except DBIError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
