"""Credential providers supplying the username/password pair for a connection."""

from __future__ import annotations

import getpass
import logging
import os
import sys
from pathlib import Path
from typing import Callable, Mapping, Protocol, TextIO, runtime_checkable

from .errors import ConfigurationError, InputError
from .models import Credentials
from .settings_file import read_settings_file, require_keys

LOG = logging.getLogger(__name__)

DEFAULT_USERNAME_VARIABLE = "username"
DEFAULT_PASSWORD_VARIABLE = "password"

PasswordReader = Callable[[str], str]


@runtime_checkable
class CredentialProvider(Protocol):
    """Protocol implemented by every credential strategy."""

    def resolve(self) -> Credentials:
        """Return the credentials for the next connection."""


class LiteralCredentialProvider:
    """Returns a fixed pair; only meant for local, disposable databases."""

    def __init__(self, username: str, password: str) -> None:
        self._credentials = Credentials(username=username, password=password)

    def resolve(self) -> Credentials:
        LOG.debug("Using literal credentials for user %s", self._credentials.username)
        return self._credentials


class FileCredentialProvider:
    """Reads ``user``/``passwd`` from a dictionary-literal file."""

    USERNAME_KEY = "user"
    PASSWORD_KEY = "passwd"

    def __init__(self, path: str | Path, *, variable: str | None = None) -> None:
        self._path = Path(path).expanduser()
        self._variable = variable

    @property
    def path(self) -> Path:
        return self._path

    def resolve(self) -> Credentials:
        values = read_settings_file(self._path, name=self._variable)
        require_keys(
            values,
            (self.USERNAME_KEY, self.PASSWORD_KEY),
            source=f"Credentials file '{self._path}'",
        )
        LOG.debug("Resolved credentials from file %s", self._path)
        return Credentials(
            username=str(values[self.USERNAME_KEY]),
            password=str(values[self.PASSWORD_KEY]),
        )


class PromptCredentialProvider:
    """Asks for the username on the terminal and reads the password masked.

    Blocks the calling thread until both answers are entered. ``stdin`` and
    ``password_reader`` default to ``sys.stdin`` and ``getpass.getpass``.
    """

    def __init__(
        self,
        *,
        username_prompt: str = "Username: ",
        password_prompt: str = "Password: ",
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        password_reader: PasswordReader | None = None,
    ) -> None:
        self._username_prompt = username_prompt
        self._password_prompt = password_prompt
        self._stdin = stdin
        self._stdout = stdout
        self._password_reader = password_reader or getpass.getpass

    def resolve(self) -> Credentials:
        username = self._read_username()
        try:
            password = self._password_reader(self._password_prompt)
        except (EOFError, KeyboardInterrupt) as exc:
            raise InputError("Password prompt was aborted.") from exc
        LOG.debug("Resolved credentials interactively for user %s", username)
        return Credentials(username=username, password=password.rstrip("\r\n"))

    def _read_username(self) -> str:
        stdin = self._stdin or sys.stdin
        stdout = self._stdout or sys.stdout
        stdout.write(self._username_prompt)
        stdout.flush()
        try:
            line = stdin.readline()
        except KeyboardInterrupt as exc:
            raise InputError("Username prompt was aborted.") from exc
        if not line:
            raise InputError("Reached end of input while reading the username.")
        return line.rstrip("\r\n")


class EnvironmentCredentialProvider:
    """Reads the pair from two named process environment variables."""

    def __init__(
        self,
        username_variable: str = DEFAULT_USERNAME_VARIABLE,
        password_variable: str = DEFAULT_PASSWORD_VARIABLE,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._username_variable = username_variable
        self._password_variable = password_variable
        self._environ = environ

    def resolve(self) -> Credentials:
        environ = os.environ if self._environ is None else self._environ
        missing = [
            name
            for name in (self._username_variable, self._password_variable)
            if name not in environ
        ]
        if missing:
            joined = ", ".join(missing)
            raise ConfigurationError(f"Environment variable(s) not set: {joined}.")
        LOG.debug(
            "Resolved credentials from environment variables %s/%s",
            self._username_variable,
            self._password_variable,
        )
        return Credentials(
            username=environ[self._username_variable],
            password=environ[self._password_variable],
        )


__all__ = [
    "CredentialProvider",
    "DEFAULT_PASSWORD_VARIABLE",
    "DEFAULT_USERNAME_VARIABLE",
    "EnvironmentCredentialProvider",
    "FileCredentialProvider",
    "LiteralCredentialProvider",
    "PasswordReader",
    "PromptCredentialProvider",
]
