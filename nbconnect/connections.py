"""Connection openers delegating to external SQL connectivity libraries."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, runtime_checkable
from urllib.parse import unquote_plus

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .descriptor import DEFAULT_DIALECT, sqlalchemy_url
from .errors import ConnectionOpenError
from .models import ConnectionDescriptor

LOG = logging.getLogger(__name__)


@runtime_checkable
class ConnectionOpener(Protocol):
    """Protocol implemented by connection openers."""

    def open(self, descriptor: ConnectionDescriptor) -> Any:
        """Open a connection handle for the descriptor."""

    def close(self, handle: Any) -> None:
        """Release a handle returned by ``open``."""


class SqlAlchemyConnectionOpener:
    """Opens a SQLAlchemy engine over the ``odbc_connect`` URL form."""

    def __init__(
        self,
        *,
        dialect: str = DEFAULT_DIALECT,
        engine_options: Mapping[str, Any] | None = None,
        verify: bool = True,
    ) -> None:
        self._dialect = dialect
        self._engine_options = dict(engine_options or {})
        self._verify = verify

    def open(self, descriptor: ConnectionDescriptor) -> Engine:
        try:
            engine = create_engine(sqlalchemy_url(descriptor, self._dialect), **self._engine_options)
        except (SQLAlchemyError, ImportError) as exc:
            # The URL embeds the descriptor, so only the exception type is reported.
            raise ConnectionOpenError(
                f"Failed to create {self._dialect} engine ({type(exc).__name__})."
            ) from exc
        if self._verify:
            try:
                with engine.connect():
                    pass
            except SQLAlchemyError as exc:
                engine.dispose()
                raise ConnectionOpenError(
                    f"Failed to connect through {self._dialect}: {_describe(exc)}"
                ) from exc
        return engine

    def close(self, handle: Engine) -> None:
        handle.dispose()


class PyodbcConnectionOpener:
    """Opens a raw pyodbc connection from the decoded descriptor."""

    def __init__(self, *, timeout: int = 0, autocommit: bool = False) -> None:
        self._timeout = timeout
        self._autocommit = autocommit

    def open(self, descriptor: ConnectionDescriptor) -> Any:
        import pyodbc

        try:
            return pyodbc.connect(
                unquote_plus(descriptor),
                timeout=self._timeout,
                autocommit=self._autocommit,
            )
        except pyodbc.Error as exc:
            raise ConnectionOpenError(f"Failed to connect through pyodbc: {_describe(exc)}") from exc

    def close(self, handle: Any) -> None:
        handle.close()


def _describe(exc: BaseException) -> str:
    orig = getattr(exc, "orig", None)
    source = orig if orig is not None else exc
    args = getattr(source, "args", ())
    if len(args) >= 2:
        return f"[{args[0]}] {args[1]}"
    if len(args) == 1:
        return str(args[0])
    return type(source).__name__


__all__ = [
    "ConnectionOpener",
    "PyodbcConnectionOpener",
    "SqlAlchemyConnectionOpener",
]
