"""Shared test fixtures."""

import pytest_asyncio

from pydbi.db.connection import open_connection

CREATE_TEST = """
CREATE TABLE test(
    foo TEXT,
    bar INTEGER,
    whizz DECIMAL(6,3),
    bang BOOLEAN,
    woop DATETIME
);
"""

SEED_TEST = """
INSERT INTO test (foo, bar, whizz, bang, woop) VALUES
    ('hello', 42, 3.141, 1, '2024-04-11 08:00:00'),
    ('world', -7, 2.718, 0, datetime('2024-04-12 12:30:45.789')),
    ('quickjs', 1337, 1.618, 1, '2024-04-13 23:59:59')
;
"""


@pytest_asyncio.fixture
async def conn():
    """In-memory SQLite connection."""
    connection = await open_connection("sqlite3", {"dbname": ":memory:"})
    yield connection
    if not connection.closed:
        await connection.close()


@pytest_asyncio.fixture
async def seeded(conn):
    """Connection with the three-row ``test`` table."""
    await conn.exec(CREATE_TEST)
    await conn.exec(SEED_TEST)
    return conn
