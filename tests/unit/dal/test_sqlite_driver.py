"""Tests for the SQLite driver."""

import pytest

from dal import DatabaseDriver
from dal.sqlite import SqliteDriver
from dal.transaction import TransactionStateError


def test_sqlite_driver_satisfies_contract(sqlite_driver):
    """The SQLite driver should satisfy the runtime-checkable driver protocol."""
    assert isinstance(sqlite_driver, DatabaseDriver)
    assert sqlite_driver.provider == "sqlite"


def test_statement_returns_rows_as_dicts(sqlite_driver):
    """Query rows should come back as plain dicts keyed by column name."""
    sqlite_driver.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    sqlite_driver.execute("INSERT INTO users (name) VALUES (?)", ["ada"])
    sqlite_driver.execute("INSERT INTO users (name) VALUES (?)", ["grace"])

    rows = sqlite_driver.statement("SELECT id, name FROM users WHERE id > ? ORDER BY id", [0])

    assert rows == [{"id": 1, "name": "ada"}, {"id": 2, "name": "grace"}]


def test_statement_without_result_set_returns_empty_list(sqlite_driver):
    """Non-query statements run through statement() yield no rows."""
    assert sqlite_driver.statement("CREATE TABLE t (a INTEGER)") == []


def test_last_insert_id_tracks_latest_insert(sqlite_driver):
    """last_insert_id should report the rowid of the latest INSERT."""
    assert sqlite_driver.last_insert_id() is None
    sqlite_driver.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, a TEXT)")
    sqlite_driver.execute("INSERT INTO t (a) VALUES (?)", ["x"])
    sqlite_driver.execute("INSERT INTO t (a) VALUES (?)", ["y"])

    assert sqlite_driver.last_insert_id() == 2


def test_driver_errors_propagate(sqlite_driver):
    """Errors from sqlite3 should reach the caller unchanged."""
    import sqlite3

    with pytest.raises(sqlite3.OperationalError):
        sqlite_driver.statement("SELECT * FROM missing_table")


def test_commit_persists_and_nested_begin_is_rejected(sqlite_driver):
    """Committed rows persist; a nested begin raises."""
    sqlite_driver.execute("CREATE TABLE t (a INTEGER)")
    sqlite_driver.begin_transaction()
    with pytest.raises(TransactionStateError):
        sqlite_driver.begin_transaction()
    sqlite_driver.execute("INSERT INTO t (a) VALUES (?)", [5])
    assert sqlite_driver.commit() is True

    assert sqlite_driver.statement("SELECT a FROM t") == [{"a": 5}]


def test_rollback_without_transaction_raises(sqlite_driver):
    """Rolling back while in autocommit mode is a state error."""
    with pytest.raises(TransactionStateError):
        sqlite_driver.rollback()


def test_file_database_persists_between_connections(tmp_path):
    """A file-backed database should keep rows after reconnecting."""
    path = str(tmp_path / "app.db")
    first = SqliteDriver(path)
    first.execute("CREATE TABLE t (a INTEGER)")
    first.execute("INSERT INTO t (a) VALUES (?)", [7])
    first.close()

    second = SqliteDriver(path)
    try:
        assert second.statement("SELECT a FROM t") == [{"a": 7}]
    finally:
        second.close()


def test_closed_driver_rejects_use():
    """Using a closed driver raises and closing twice is harmless."""
    driver = SqliteDriver()
    driver.close()
    driver.close()

    with pytest.raises(RuntimeError, match="closed"):
        driver.execute("SELECT 1")
