"""Query execution through an open connection handle."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlglot import exp, parse_one
from sqlglot.errors import ParseError, TokenError

LOG = logging.getLogger(__name__)

DEFAULT_DIALECT = "tsql"

_READ_KINDS = frozenset({"SELECT", "UNION", "EXCEPT", "INTERSECT", "VALUES", "WITH", "SHOW", "DESCRIBE"})


class QueryExecutionError(RuntimeError):
    """Raised when a query fails to execute."""


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Normalized query output returned to the notebook."""

    columns: tuple[str, ...]
    rows: tuple[tuple[object, ...], ...]
    status: str
    elapsed_ms: int
    row_count: int | None = None


class QueryExecutor(Protocol):
    """Interface implemented by query executors."""

    def execute(self, handle: Any, sql: str) -> QueryResult: ...


class SqlAlchemyQueryExecutor:
    """Runs SQL through a SQLAlchemy engine or connection."""

    def __init__(self, *, dialect: str = DEFAULT_DIALECT) -> None:
        self._dialect = dialect

    def execute(self, handle: Engine | Connection, sql: str) -> QueryResult:
        statement = _require_sql(sql)
        kind = statement_kind(statement, self._dialect)
        started = time.perf_counter()
        try:
            if isinstance(handle, Engine):
                with handle.connect() as conn:
                    columns, rows, row_count = self._run(conn, statement, kind)
            else:
                columns, rows, row_count = self._run(handle, statement, kind)
        except SQLAlchemyError as exc:
            raise QueryExecutionError(str(exc)) from exc
        return _result(kind, columns, rows, row_count, started)

    @staticmethod
    def _run(
        conn: Connection,
        statement: str,
        kind: str,
    ) -> tuple[tuple[str, ...], tuple[tuple[object, ...], ...], int | None]:
        result = conn.exec_driver_sql(statement)
        if result.returns_rows:
            columns = tuple(str(key) for key in result.keys())
            rows = tuple(tuple(row) for row in result)
            row_count: int | None = len(rows)
        else:
            columns, rows = (), ()
            row_count = result.rowcount if result.rowcount >= 0 else None
        # Writes with OUTPUT/RETURNING clauses return rows too.
        if kind not in _READ_KINDS:
            conn.commit()
        return columns, rows, row_count


class DbApiQueryExecutor:
    """Runs SQL through any DB-API 2.0 connection (pyodbc, sqlite3, ...)."""

    def __init__(self, *, dialect: str = DEFAULT_DIALECT) -> None:
        self._dialect = dialect

    def execute(self, handle: Any, sql: str) -> QueryResult:
        statement = _require_sql(sql)
        kind = statement_kind(statement, self._dialect)
        started = time.perf_counter()
        cursor = None
        try:
            cursor = handle.cursor()
            cursor.execute(statement)
            if cursor.description:
                columns = tuple(str(column[0]) for column in cursor.description)
                rows = tuple(tuple(row) for row in cursor.fetchall())
                row_count: int | None = len(rows)
            else:
                columns, rows = (), ()
                row_count = cursor.rowcount if cursor.rowcount >= 0 else None
            if kind not in _READ_KINDS:
                handle.commit()
        except Exception as exc:
            raise QueryExecutionError(str(exc)) from exc
        finally:
            if cursor is not None:
                cursor.close()
        return _result(kind, columns, rows, row_count, started)


def statement_kind(sql: str, dialect: str = DEFAULT_DIALECT) -> str:
    """Return the upper-cased statement type, e.g. ``SELECT`` or ``INSERT``."""

    try:
        expression = parse_one(sql, read=dialect)
    except (ParseError, TokenError):
        expression = None
    if expression is not None and not isinstance(expression, exp.Command):
        return expression.key.upper()
    head = sql.lstrip().split(None, 1)
    return head[0].upper() if head else ""


def _require_sql(sql: str) -> str:
    statement = sql.strip()
    if not statement:
        raise QueryExecutionError("Provide SQL to execute.")
    return statement


def _result(
    kind: str,
    columns: tuple[str, ...],
    rows: tuple[tuple[object, ...], ...],
    row_count: int | None,
    started: float,
) -> QueryResult:
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    if columns:
        status = f"{row_count} row(s)"
    elif row_count is not None:
        status = f"{kind} {row_count}"
    else:
        status = kind or "OK"
    LOG.debug("%s finished in %d ms", kind or "Statement", elapsed_ms)
    return QueryResult(
        columns=columns,
        rows=rows,
        status=status,
        elapsed_ms=elapsed_ms,
        row_count=row_count,
    )


__all__ = [
    "DbApiQueryExecutor",
    "QueryExecutionError",
    "QueryExecutor",
    "QueryResult",
    "SqlAlchemyQueryExecutor",
    "statement_kind",
]
