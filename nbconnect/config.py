"""Profile configuration loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import tomllib

from pydantic import BaseModel, Field, ValidationError

from .connections import ConnectionOpener, PyodbcConnectionOpener, SqlAlchemyConnectionOpener
from .credentials import (
    DEFAULT_PASSWORD_VARIABLE,
    DEFAULT_USERNAME_VARIABLE,
    CredentialProvider,
    EnvironmentCredentialProvider,
    FileCredentialProvider,
    LiteralCredentialProvider,
    PromptCredentialProvider,
)
from .errors import ConfigurationError
from .models import ConnectionParameters
from .parameters import DEFAULT_PORT, FileParameterSource, ParameterSource, StaticParameterSource

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "nbconnect" / "config.toml"

CredentialStrategy = Literal["literal", "file", "prompt", "environment"]
OpenerKind = Literal["sqlalchemy", "pyodbc"]

_STRING_KEYS = (
    "name",
    "driver",
    "host",
    "database",
    "parameters_file",
    "credentials",
    "credentials_file",
    "username",
    "password",
    "username_variable",
    "password_variable",
    "opener",
)


class ProfileConfig(BaseModel):
    """Connection profile stored in config.toml."""

    name: str
    driver: str | None = None
    host: str | None = None
    port: int = DEFAULT_PORT
    database: str | None = None
    parameters_file: str | None = None
    credentials: CredentialStrategy = "environment"
    credentials_file: str | None = None
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    username_variable: str = DEFAULT_USERNAME_VARIABLE
    password_variable: str = DEFAULT_PASSWORD_VARIABLE
    opener: OpenerKind = "sqlalchemy"

    def parameter_source(self) -> ParameterSource:
        """Parameters file when configured, otherwise the inline fields."""

        if self.parameters_file:
            return FileParameterSource(self.parameters_file)
        missing = [key for key in ("driver", "host", "database") if not getattr(self, key)]
        if missing:
            raise ConfigurationError(
                f"Profile '{self.name}' is missing {', '.join(missing)} and has no parameters_file."
            )
        return StaticParameterSource(
            ConnectionParameters(
                driver=self.driver,
                host=self.host,
                port=self.port,
                database=self.database,
            )
        )

    def credential_provider(self) -> CredentialProvider:
        """Build the provider for the profile's credential strategy."""

        if self.credentials == "literal":
            if self.username is None or self.password is None:
                raise ConfigurationError(
                    f"Profile '{self.name}' uses literal credentials but lacks username/password."
                )
            return LiteralCredentialProvider(self.username, self.password)
        if self.credentials == "file":
            path = self.credentials_file or self.parameters_file
            if not path:
                raise ConfigurationError(
                    f"Profile '{self.name}' uses file credentials but names no credentials_file."
                )
            return FileCredentialProvider(path)
        if self.credentials == "prompt":
            return PromptCredentialProvider()
        return EnvironmentCredentialProvider(self.username_variable, self.password_variable)

    def connection_opener(self) -> ConnectionOpener:
        if self.opener == "pyodbc":
            return PyodbcConnectionOpener()
        return SqlAlchemyConnectionOpener()


class AppConfig(BaseModel):
    """Shape of the configuration file."""

    profiles: list[ProfileConfig] = Field(default_factory=list)
    active_profile: str | None = None

    def profile(self, name: str | None = None) -> ProfileConfig:
        """Return the named profile, else the active one, else the first."""

        target = name or self.active_profile
        if target is None:
            if not self.profiles:
                raise ConfigurationError("No connection profiles are configured.")
            return self.profiles[0]
        for profile in self.profiles:
            if profile.name == target:
                return profile
        raise ConfigurationError(f"Profile '{target}' not found.")

    def with_active_profile(self, name: str) -> AppConfig:
        """Return a copy with the active profile updated."""

        return self.model_copy(update={"active_profile": name})

    def with_profile(self, profile: ProfileConfig) -> AppConfig:
        """Return a copy with ``profile`` added or replacing one of the same name."""

        profiles = [entry for entry in self.profiles if entry.name != profile.name]
        profiles.append(profile)
        return self.model_copy(update={"profiles": profiles})


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    config_path = path or CONFIG_FILE
    try:
        data = _read_config_file(config_path)
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError) as exc:
        LOG.warning("Ignoring unreadable config file %s: %s", config_path, exc)
        return AppConfig()

    profiles: list[ProfileConfig] = []
    for entry in data.get("profiles", []):
        try:
            profiles.append(ProfileConfig(**entry))
        except ValidationError as exc:
            LOG.warning("Skipping invalid profile '%s': %s", entry.get("name"), exc)
    return AppConfig(profiles=profiles, active_profile=data.get("active_profile"))


def save_config(config: AppConfig, path: Path | None = None) -> None:
    """Persist configuration to disk; literal passwords are never written."""

    config_path = path or CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = []
    if config.active_profile:
        lines.append(f"active_profile = {_quote(config.active_profile)}")
    for profile in config.profiles:
        lines.append("")
        lines.append("[[profiles]]")
        for key in _STRING_KEYS:
            if key == "password":
                continue
            value = getattr(profile, key)
            if value is None:
                continue
            if key == "name":
                lines.append(f"name = {_quote(value)}")
                lines.append(f"port = {profile.port}")
                continue
            lines.append(f"{key} = {_quote(value)}")
    config_path.write_text("\n".join(lines).lstrip("\n") + "\n")


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    active_profile = raw.get("active_profile")
    if isinstance(active_profile, str):
        data["active_profile"] = active_profile
    profiles = raw.get("profiles")
    if isinstance(profiles, list):
        parsed_profiles: list[dict[str, object]] = []
        for profile in profiles:
            if not isinstance(profile, dict):
                continue
            parsed: dict[str, object] = {}
            for key in _STRING_KEYS:
                value = profile.get(key)
                if isinstance(value, str):
                    parsed[key] = value
            port = profile.get("port")
            if isinstance(port, int) and not isinstance(port, bool):
                parsed["port"] = port
            if parsed.get("name"):
                parsed_profiles.append(parsed)
        data["profiles"] = parsed_profiles
    return data


__all__ = ["AppConfig", "CONFIG_FILE", "ProfileConfig", "load_config", "save_config"]
