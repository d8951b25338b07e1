"""Tests for the credential providers."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from nbconnect.credentials import (
    CredentialProvider,
    EnvironmentCredentialProvider,
    FileCredentialProvider,
    LiteralCredentialProvider,
    PromptCredentialProvider,
)
from nbconnect.errors import ConfigurationError, InputError
from nbconnect.models import Credentials

CREDENTIALS_MODULE = '''"""Local credentials; listed in .gitignore."""

login = {
    "driver": "{ODBC Driver 13 for SQL Server}",
    "server": "localhost",
    "port": 1433,
    "database": "nb-database",
    "user": "nb-user",
    "passwd": "nb-password",
}
'''


def test_every_strategy_satisfies_protocol(tmp_path: Path) -> None:
    providers = [
        LiteralCredentialProvider("nb-user", "nb-password"),
        FileCredentialProvider(tmp_path / "credentials.py"),
        PromptCredentialProvider(),
        EnvironmentCredentialProvider(),
    ]

    assert all(isinstance(provider, CredentialProvider) for provider in providers)


def test_literal_provider_returns_fixed_pair() -> None:
    provider = LiteralCredentialProvider("nb-user", "nb-password")

    assert provider.resolve() == Credentials(username="nb-user", password="nb-password")


def test_file_provider_reads_module_assignment(tmp_path: Path) -> None:
    path = tmp_path / "credentials.py"
    path.write_text(CREDENTIALS_MODULE)

    result = FileCredentialProvider(path).resolve()

    assert result == Credentials(username="nb-user", password="nb-password")


def test_file_provider_reads_bare_dict_literal(tmp_path: Path) -> None:
    path = tmp_path / "login.txt"
    path.write_text("{'user': 'alice', 'passwd': 's3cr3t'}\n")

    result = FileCredentialProvider(path).resolve()

    assert result == Credentials(username="alice", password="s3cr3t")


def test_file_provider_selects_named_variable(tmp_path: Path) -> None:
    path = tmp_path / "credentials.py"
    path.write_text(
        "staging = {'user': 'stage', 'passwd': 'one'}\n"
        "production = {'user': 'prod', 'passwd': 'two'}\n"
    )

    result = FileCredentialProvider(path, variable="production").resolve()

    assert result.username == "prod"


def test_file_provider_raises_when_file_missing(tmp_path: Path) -> None:
    provider = FileCredentialProvider(tmp_path / "absent.py")

    with pytest.raises(ConfigurationError, match="does not exist"):
        provider.resolve()


@pytest.mark.parametrize(
    "content",
    [
        "login = {'user': 'nb-user', 'passwd': ",
        "login = {'user': 'nb-user', 'passwd': open('secret').read()}",
        "login = ['nb-user', 'nb-password']",
    ],
)
def test_file_provider_raises_on_malformed_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "credentials.py"
    path.write_text(content)

    with pytest.raises(ConfigurationError):
        FileCredentialProvider(path).resolve()


def test_file_provider_raises_on_undecodable_file(tmp_path: Path) -> None:
    path = tmp_path / "credentials.py"
    path.write_bytes(b"login = {'user': 'nb-user', 'passwd': '\xff\xfe'}\n")

    with pytest.raises(ConfigurationError, match="could not be decoded"):
        FileCredentialProvider(path).resolve()


def test_file_provider_raises_when_keys_missing(tmp_path: Path) -> None:
    path = tmp_path / "credentials.py"
    path.write_text("login = {'user': 'nb-user'}\n")

    with pytest.raises(ConfigurationError, match="passwd"):
        FileCredentialProvider(path).resolve()


def test_environment_provider_reads_default_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("username", "alice")
    monkeypatch.setenv("password", "s3cr3t")

    result = EnvironmentCredentialProvider().resolve()

    assert result == Credentials(username="alice", password="s3cr3t")


def test_environment_provider_raises_when_variable_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("username", "alice")
    monkeypatch.delenv("password", raising=False)

    with pytest.raises(ConfigurationError, match="password"):
        EnvironmentCredentialProvider().resolve()


def test_environment_provider_uses_custom_names_and_mapping() -> None:
    provider = EnvironmentCredentialProvider(
        "NB_SQL_USER",
        "NB_SQL_PASSWORD",
        environ={"NB_SQL_USER": "carol", "NB_SQL_PASSWORD": "pw"},
    )

    assert provider.resolve() == Credentials(username="carol", password="pw")


def test_environment_provider_does_not_leak_values_in_error() -> None:
    provider = EnvironmentCredentialProvider(environ={"username": "alice"})

    with pytest.raises(ConfigurationError) as excinfo:
        provider.resolve()

    assert "alice" not in str(excinfo.value)


def test_prompt_provider_reads_username_and_masked_password() -> None:
    prompts: list[str] = []
    stdout = io.StringIO()

    def _masked(prompt: str) -> str:
        prompts.append(prompt)
        return "hunter2\n"

    provider = PromptCredentialProvider(
        stdin=io.StringIO("bob\n"),
        stdout=stdout,
        password_reader=_masked,
    )

    result = provider.resolve()

    assert result == Credentials(username="bob", password="hunter2")
    assert stdout.getvalue() == "Username: "
    assert prompts == ["Password: "]


def test_prompt_provider_raises_on_end_of_input() -> None:
    provider = PromptCredentialProvider(
        stdin=io.StringIO(""),
        stdout=io.StringIO(),
        password_reader=lambda _prompt: "unused",
    )

    with pytest.raises(InputError):
        provider.resolve()


def test_prompt_provider_raises_when_password_prompt_aborted() -> None:
    def _abort(_prompt: str) -> str:
        raise EOFError

    provider = PromptCredentialProvider(
        stdin=io.StringIO("bob\n"),
        stdout=io.StringIO(),
        password_reader=_abort,
    )

    with pytest.raises(InputError):
        provider.resolve()
