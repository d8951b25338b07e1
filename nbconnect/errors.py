"""Error types raised while resolving credentials or opening connections."""

from __future__ import annotations


class NbConnectError(RuntimeError):
    """Base class for errors raised by nbconnect."""


class ConfigurationError(NbConnectError):
    """Raised when a file, environment variable or profile is missing or malformed."""


class InputError(NbConnectError):
    """Raised when an interactive prompt is aborted before completing."""


class ConnectionOpenError(NbConnectError):
    """Raised when the connectivity library cannot open a handle."""


__all__ = ["ConfigurationError", "ConnectionOpenError", "InputError", "NbConnectError"]
