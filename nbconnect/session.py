"""Notebook session wiring parameters, credentials and a connection opener."""

from __future__ import annotations

import logging
from typing import Any

from .config import AppConfig, load_config
from .connections import ConnectionOpener, PyodbcConnectionOpener, SqlAlchemyConnectionOpener
from .credentials import CredentialProvider
from .descriptor import build
from .models import ConnectionParameters
from .parameters import ParameterSource
from .query import DbApiQueryExecutor, QueryExecutor, QueryResult, SqlAlchemyQueryExecutor

LOG = logging.getLogger(__name__)


class NotebookSession:
    """Single-owner connection lifecycle for one notebook.

    Credentials are resolved on ``connect`` and dropped as soon as the handle
    is open; neither they nor the descriptor are kept on the session.
    """

    def __init__(
        self,
        parameters: ParameterSource,
        credentials: CredentialProvider,
        *,
        opener: ConnectionOpener | None = None,
        query_executor: QueryExecutor | None = None,
        name: str | None = None,
    ) -> None:
        self._parameters = parameters
        self._credentials = credentials
        self._opener = opener or SqlAlchemyConnectionOpener()
        self._query_executor = query_executor or _default_executor(self._opener)
        self._name = name
        self._handle: Any | None = None
        self._connected_params: ConnectionParameters | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig | None = None,
        profile: str | None = None,
    ) -> NotebookSession:
        """Build a session for ``profile`` (or the active/first profile)."""

        app_config = config if config is not None else load_config()
        entry = app_config.profile(profile)
        return cls(
            entry.parameter_source(),
            entry.credential_provider(),
            opener=entry.connection_opener(),
            name=entry.name,
        )

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def handle(self) -> Any | None:
        """The open connection handle, if any."""

        return self._handle

    @property
    def connected(self) -> bool:
        return self._handle is not None

    @property
    def parameters(self) -> ConnectionParameters | None:
        """Parameters used for the currently open handle."""

        return self._connected_params

    def connect(self) -> Any:
        """Open the handle, resolving credentials once; no-op when already open."""

        if self._handle is not None:
            return self._handle
        params = self._parameters.load()
        creds = self._credentials.resolve()
        descriptor = build(params, creds)
        del creds
        try:
            handle = self._opener.open(descriptor)
        finally:
            del descriptor
        self._handle = handle
        self._connected_params = params
        LOG.info(
            "Opened connection%s to %s:%s/%s",
            f" for profile '{self._name}'" if self._name else "",
            params.host,
            params.port,
            params.database,
        )
        return handle

    def run_query(self, sql: str) -> QueryResult:
        """Execute ``sql`` through the handle, connecting first if needed."""

        handle = self.connect()
        return self._query_executor.execute(handle, sql)

    def close(self) -> None:
        """Release the handle; calling twice is harmless."""

        handle, self._handle = self._handle, None
        params, self._connected_params = self._connected_params, None
        if handle is None:
            return
        self._opener.close(handle)
        if params is not None:
            LOG.info("Closed connection to %s/%s", params.host, params.database)

    def __enter__(self) -> NotebookSession:
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _default_executor(opener: ConnectionOpener) -> QueryExecutor:
    if isinstance(opener, PyodbcConnectionOpener):
        return DbApiQueryExecutor()
    return SqlAlchemyQueryExecutor()


__all__ = ["NotebookSession"]
