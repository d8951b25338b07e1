"""Sources for the non-secret connection parameters."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import ConfigurationError
from .models import ConnectionParameters
from .settings_file import read_settings_file, require_keys

LOG = logging.getLogger(__name__)

DEFAULT_PORT = 1433


@runtime_checkable
class ParameterSource(Protocol):
    """Protocol implemented by parameter sources."""

    def load(self) -> ConnectionParameters:
        """Return the parameters for the next connection."""


class StaticParameterSource:
    """Wraps parameters supplied directly by the caller."""

    def __init__(self, params: ConnectionParameters) -> None:
        self._params = params

    def load(self) -> ConnectionParameters:
        return self._params


class FileParameterSource:
    """Reads ``driver``/``server``/``port``/``database`` from a settings file.

    ``user`` and ``passwd`` may be left out of the file when the secrets come
    from another provider, e.g. an interactive prompt.
    """

    REQUIRED_KEYS = ("driver", "server", "database")

    def __init__(self, path: str | Path, *, variable: str | None = None) -> None:
        self._path = Path(path).expanduser()
        self._variable = variable

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ConnectionParameters:
        values = read_settings_file(self._path, name=self._variable)
        source = f"Parameters file '{self._path}'"
        require_keys(values, self.REQUIRED_KEYS, source=source)
        port = _port(values.get("port", DEFAULT_PORT), source)
        params = ConnectionParameters(
            driver=str(values["driver"]),
            host=str(values["server"]),
            port=port,
            database=str(values["database"]),
        )
        LOG.debug("Loaded parameters for %s/%s from %s", params.host, params.database, self._path)
        return params


def _port(value: object, source: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{source} has a non-integer port: {value!r}.")
    if isinstance(value, int):
        port = value
    elif isinstance(value, str) and value.strip().isdigit():
        port = int(value)
    else:
        raise ConfigurationError(f"{source} has a non-integer port: {value!r}.")
    if not 0 < port < 65536:
        raise ConfigurationError(f"{source} has an out-of-range port: {port}.")
    return port


__all__ = ["DEFAULT_PORT", "FileParameterSource", "ParameterSource", "StaticParameterSource"]
