# ABOUTME: Runs SQL artifacts against a SQLite dataset and returns tabular results.
# ABOUTME: Turns database errors into QueryResult errors so verification never raises.

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Protocol, Union

from src.common.schemas import QueryResult

Dataset = Union[sqlite3.Connection, Path, str]


class ExecutionEngine(Protocol):
    def execute(self, sql: str, dataset: Dataset) -> QueryResult:
        ...


class SqliteExecutionEngine:
    """Execution engine backed by the standard-library sqlite3 driver."""

    def execute(self, sql: str, dataset: Dataset) -> QueryResult:
        if isinstance(dataset, sqlite3.Connection):
            return _run_query_only(dataset, sql)

        try:
            con = _connect_read_only(Path(dataset))
        except sqlite3.Error as exc:
            return QueryResult(error=str(exc))
        try:
            return _run(con, sql)
        finally:
            con.close()


def build_dataset(script: str) -> sqlite3.Connection:
    """In-memory database initialised from a schema + seed script."""

    con = sqlite3.connect(":memory:")
    con.executescript(script)
    return con


def _connect_read_only(path: Path) -> sqlite3.Connection:
    return sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)


def _run_query_only(con: sqlite3.Connection, sql: str) -> QueryResult:
    """Run on a caller-owned connection with writes disabled, then restore its state."""

    was_in_transaction = con.in_transaction
    previous = con.execute("PRAGMA query_only").fetchone()[0]
    con.execute("PRAGMA query_only = ON")
    try:
        return _run(con, sql)
    finally:
        if con.in_transaction and not was_in_transaction:
            con.rollback()
        con.execute(f"PRAGMA query_only = {int(previous)}")


def _run(con: sqlite3.Connection, sql: str) -> QueryResult:
    try:
        cursor = con.execute(sql)
        if cursor.description is None:
            return QueryResult()
        columns = tuple(col[0] for col in cursor.description)
        rows = tuple(tuple(row) for row in cursor.fetchall())
    except (sqlite3.Error, sqlite3.Warning) as exc:
        return QueryResult(error=str(exc))
    return QueryResult(columns=columns, rows=rows)
