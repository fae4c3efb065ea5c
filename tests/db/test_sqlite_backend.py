"""Tests for the SQLite backend: options, value typing and error mapping."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from pydbi.db.binding import bind
from pydbi.db.sqlite_backend import (
    SQLiteBackend,
    _convert_bool,
    _convert_date,
    _convert_datetime,
    _convert_decimal,
    resolve_path,
    resolve_timeout,
)
from pydbi.errors import ConnectionError, StatementError
from pydbi.models.params import named, positional


class TestOptions:
    def test_default_is_memory(self):
        assert resolve_path({}) == ":memory:"

    def test_dbname_joined_with_dbdir(self, tmp_path):
        path = resolve_path({"dbname": "test.sqlite3", "sqlite3_dbdir": str(tmp_path)})
        assert path == str(tmp_path / "test.sqlite3")

    def test_dbdir_defaults_to_cwd(self):
        assert resolve_path({"dbname": "x.db"}) == "x.db"

    def test_timeout_in_milliseconds(self):
        assert resolve_timeout({"sqlite3_timeout": "2500"}) == 2.5

    def test_timeout_default(self):
        assert resolve_timeout({}) == 5.0

    def test_invalid_timeout(self):
        with pytest.raises(ConnectionError, match="sqlite3_timeout"):
            resolve_timeout({"sqlite3_timeout": "soon"})


class TestConverters:
    def test_bool(self):
        assert _convert_bool(b"1") is True
        assert _convert_bool(b"0") is False
        assert _convert_bool(b"TRUE") is True
        assert _convert_bool(b"maybe") == "maybe"

    def test_decimal_keeps_text_precision(self):
        value = _convert_decimal(b"3.141")
        assert value == Decimal("3.141")
        assert str(value) == "3.141"

    def test_decimal_fallback(self):
        assert _convert_decimal(b"n/a") == "n/a"

    def test_datetime(self):
        assert _convert_datetime(b"2024-04-12 12:30:45") == datetime(2024, 4, 12, 12, 30, 45)

    def test_datetime_fallback(self):
        assert _convert_datetime(b"yesterday") == "yesterday"

    def test_non_utf8_returned_as_bytes(self):
        for convert in (_convert_bool, _convert_decimal, _convert_datetime, _convert_date):
            assert convert(b"\xff\xfe") == b"\xff\xfe"

    def test_bool_from_other_numbers(self):
        assert _convert_bool(b"2") is True
        assert _convert_bool(b"-1") is True
        assert _convert_bool(b"0.0") is False

    def test_datetime_epoch_is_naive_utc(self):
        value = _convert_datetime(b"1712925045")
        assert value == datetime(2024, 4, 12, 12, 30, 45)
        assert value.tzinfo is None

    def test_datetime_offset_normalized_to_utc(self):
        value = _convert_datetime(b"2024-04-12T14:30:45+02:00")
        assert value == datetime(2024, 4, 12, 12, 30, 45)
        assert value.tzinfo is None

    def test_datetime_out_of_range_number_kept(self):
        assert _convert_datetime(b"1e300") == 1e300

    def test_date_fallback_keeps_number(self):
        assert _convert_date(b"7") == 7
        assert _convert_date(b"someday") == "someday"


@pytest.mark.asyncio
async def test_open_in_directory(tmp_path):
    backend = await SQLiteBackend.create({"dbname": "t.db", "sqlite3_dbdir": str(tmp_path)})
    try:
        await backend.execute(bind("CREATE TABLE x (a INTEGER)"))
    finally:
        await backend.close()
    assert (tmp_path / "t.db").exists()


@pytest.mark.asyncio
async def test_open_missing_directory_fails(tmp_path):
    with pytest.raises(ConnectionError, match="sqlite3"):
        await SQLiteBackend.create(
            {"dbname": "t.db", "sqlite3_dbdir": str(tmp_path / "missing" / "dir")}
        )


@pytest.mark.asyncio
async def test_declared_types_surface_natively(seeded):
    res = await seeded.query("SELECT foo, bar, whizz, bang, woop FROM test WHERE foo = 'world'")
    (row,) = res.to_array()
    foo, bar, whizz, bang, woop = row
    assert foo == "world"
    assert bar == -7
    assert whizz == Decimal("2.718")
    assert bang is False
    assert woop == datetime(2024, 4, 12, 12, 30, 45)


@pytest.mark.asyncio
async def test_null_is_none(conn):
    await conn.exec("CREATE TABLE n (a TEXT, b BOOLEAN, c DATETIME)")
    await conn.exec("INSERT INTO n VALUES (NULL, NULL, NULL)")
    res = await conn.query("SELECT a, b, c FROM n")
    assert res.to_array() == [[None, None, None]]


@pytest.mark.asyncio
async def test_expression_columns_untyped(conn):
    res = await conn.query("SELECT 1 + 1 AS two, 'x' AS s, 1.5 AS f")
    assert res.to_array(True) == [{"two": 2, "s": "x", "f": 1.5}]


@pytest.mark.asyncio
async def test_blob_and_date(conn):
    await conn.exec("CREATE TABLE b (data BLOB, day DATE)")
    await conn.exec("INSERT INTO b VALUES (?, ?)", positional(b"\x00\xff", date(2024, 1, 2)))
    res = await conn.query("SELECT data, day FROM b")
    assert res.to_array() == [[b"\x00\xff", date(2024, 1, 2)]]


@pytest.mark.asyncio
async def test_bound_decimal_and_datetime_round_trip(conn):
    await conn.exec("CREATE TABLE r (d DECIMAL(6,3), t TIMESTAMP)")
    when = datetime(2024, 4, 12, 12, 30, 45, 789000)
    await conn.exec("INSERT INTO r VALUES (:d, :t)", named(d=Decimal("1.618"), t=when))
    res = await conn.query("SELECT d, t FROM r")
    assert res.to_array() == [[Decimal("1.618"), when]]


@pytest.mark.asyncio
async def test_exec_runs_multiple_statements(conn):
    await conn.exec("CREATE TABLE m (a INTEGER); INSERT INTO m VALUES (1); INSERT INTO m VALUES (2);")
    res = await conn.query("SELECT COUNT(*) AS n FROM m")
    assert res.to_array(True) == [{"n": 2}]


@pytest.mark.asyncio
async def test_query_multiple_statements_rejected(conn):
    with pytest.raises(StatementError):
        await conn.query("SELECT 1; SELECT 2")


@pytest.mark.asyncio
async def test_autocommit_persists_between_connections(tmp_path):
    from pydbi.db.connection import open_connection

    options = {"dbname": "persist.db", "sqlite3_dbdir": str(tmp_path)}
    first = await open_connection("sqlite3", options)
    await first.exec("CREATE TABLE p (a INTEGER)")
    await first.exec("INSERT INTO p VALUES (?)", positional(9))
    await first.close()

    second = await open_connection("sqlite", options)
    try:
        res = await second.query("SELECT a FROM p")
        assert res.to_array() == [[9]]
    finally:
        await second.close()


@pytest.mark.asyncio
async def test_non_utf8_blob_in_typed_column(conn):
    await conn.exec("CREATE TABLE p (d DECIMAL(6,3), t TIMESTAMP)")
    await conn.exec("INSERT INTO p VALUES (X'FFFE', X'FF')")
    res = await conn.query("SELECT d, t FROM p")
    assert res.to_array() == [[b"\xff\xfe", b"\xff"]]


@pytest.mark.asyncio
async def test_boolean_column_keeps_stored_kind(conn):
    await conn.exec("CREATE TABLE b (flag BOOLEAN)")
    await conn.exec(
        "INSERT INTO b VALUES (2); INSERT INTO b VALUES (0); INSERT INTO b VALUES ('maybe');"
    )
    res = await conn.query("SELECT flag FROM b ORDER BY rowid")
    assert res.to_array() == [[True], [False], ["maybe"]]


@pytest.mark.asyncio
async def test_timestamp_column_mixing_text_and_epoch(conn):
    await conn.exec("CREATE TABLE e (t TIMESTAMP)")
    await conn.exec(
        "INSERT INTO e VALUES ('2024-04-12 12:30:45'); INSERT INTO e VALUES (1712925045);"
    )
    res = await conn.query("SELECT t FROM e ORDER BY rowid")
    values = [row[0] for row in res.to_array()]
    assert [v.tzinfo for v in values] == [None, None]
    assert values[0] == values[1] == datetime(2024, 4, 12, 12, 30, 45)
    assert sorted(values) == values
