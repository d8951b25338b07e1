"""Credential resolution and SQL Server connection helpers for notebooks."""

from __future__ import annotations

__version__ = "0.1.0"

from .config import AppConfig, ProfileConfig, load_config, save_config
from .credentials import (
    CredentialProvider,
    EnvironmentCredentialProvider,
    FileCredentialProvider,
    LiteralCredentialProvider,
    PromptCredentialProvider,
)
from .descriptor import build, parse, sqlalchemy_url
from .errors import ConfigurationError, ConnectionOpenError, InputError, NbConnectError
from .models import ConnectionDescriptor, ConnectionParameters, Credentials
from .parameters import FileParameterSource, ParameterSource, StaticParameterSource
from .session import NotebookSession

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "ConnectionDescriptor",
    "ConnectionOpenError",
    "ConnectionParameters",
    "CredentialProvider",
    "Credentials",
    "EnvironmentCredentialProvider",
    "FileCredentialProvider",
    "FileParameterSource",
    "InputError",
    "LiteralCredentialProvider",
    "NbConnectError",
    "NotebookSession",
    "ParameterSource",
    "ProfileConfig",
    "PromptCredentialProvider",
    "StaticParameterSource",
    "build",
    "load_config",
    "parse",
    "save_config",
    "sqlalchemy_url",
]
