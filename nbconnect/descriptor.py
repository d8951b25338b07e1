"""Build and parse percent-encoded ODBC connection descriptors."""

from __future__ import annotations

from urllib.parse import quote_plus, unquote_plus

from .models import ConnectionDescriptor, ConnectionParameters, Credentials

DEFAULT_DIALECT = "mssql+pyodbc"

_FIELD_ORDER = ("DRIVER", "SERVER", "PORT", "DATABASE", "UID", "PWD")


def build(params: ConnectionParameters, creds: Credentials) -> ConnectionDescriptor:
    """Merge parameters and credentials into an encoded connection descriptor.

    Fields are written in a fixed order, each terminated by ``;``, and the
    whole string is encoded as a single URI query value. Values are not
    sanitized: a ``;`` or ``=`` inside a value ends up in the descriptor
    unchanged.
    """

    _validate(params)
    values = (
        params.driver,
        params.host,
        str(params.port),
        params.database,
        creds.username,
        creds.password,
    )
    raw = "".join(f"{key}={value};" for key, value in zip(_FIELD_ORDER, values))
    return ConnectionDescriptor(quote_plus(raw))


def parse(descriptor: str) -> tuple[ConnectionParameters, Credentials]:
    """Decode a descriptor produced by ``build`` back into its fields."""

    decoded = unquote_plus(descriptor)
    fields: dict[str, str] = {}
    for chunk in decoded.split(";"):
        if not chunk:
            continue
        key, sep, value = chunk.partition("=")
        if not sep:
            raise ValueError(f"Descriptor segment '{key}' is not a KEY=value pair.")
        fields[key.strip().upper()] = value
    missing = [key for key in _FIELD_ORDER if key not in fields]
    if missing:
        raise ValueError(f"Descriptor is missing field(s): {', '.join(missing)}.")
    try:
        port = int(fields["PORT"])
    except ValueError as exc:
        raise ValueError("Descriptor PORT is not an integer.") from exc
    params = ConnectionParameters(
        driver=fields["DRIVER"],
        host=fields["SERVER"],
        port=port,
        database=fields["DATABASE"],
    )
    return params, Credentials(username=fields["UID"], password=fields["PWD"])


def sqlalchemy_url(descriptor: str, dialect: str = DEFAULT_DIALECT) -> str:
    """Embed the descriptor as the ``odbc_connect`` value of a SQLAlchemy URL."""

    return f"{dialect}:///?odbc_connect={descriptor}"


def _validate(params: ConnectionParameters) -> None:
    for name in ("driver", "host", "database"):
        value = getattr(params, name)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Connection parameter '{name}' must be a non-empty string.")
    port = params.port
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValueError("Connection parameter 'port' must be an integer.")
    if not 0 < port < 65536:
        raise ValueError(f"Connection parameter 'port' is out of range: {port}.")


__all__ = ["DEFAULT_DIALECT", "build", "parse", "sqlalchemy_url"]
