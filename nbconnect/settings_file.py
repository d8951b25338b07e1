"""Reader for dictionary-literal settings files kept out of version control.

The file holds either a bare ``{...}`` literal or a small Python module with a
top-level assignment such as::

    \"\"\"Connection details; listed in .gitignore.\"\"\"

    login = {
        "driver": "{ODBC Driver 13 for SQL Server}",
        "server": "localhost",
        "port": 1433,
        "database": "nb-database",
        "user": "nb-user",
        "passwd": "nb-password",
    }

The file is parsed, never imported or executed.
"""

from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from .errors import ConfigurationError

LOG = logging.getLogger(__name__)


def read_settings_file(path: str | Path, *, name: str | None = None) -> dict[str, Any]:
    """Return the dictionary literal stored in ``path``.

    When ``name`` is given, only an assignment to that variable is accepted;
    otherwise the first dictionary literal in the file wins.
    """

    file_path = Path(path).expanduser()
    try:
        source = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Settings file '{file_path}' does not exist.") from exc
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"Settings file '{file_path}' could not be decoded as UTF-8.") from exc
    except OSError as exc:
        raise ConfigurationError(f"Settings file '{file_path}' could not be read: {exc}") from exc

    try:
        tree = ast.parse(source, filename=str(file_path))
    except SyntaxError as exc:
        raise ConfigurationError(f"Settings file '{file_path}' is not valid: {exc.msg}") from exc

    node = _find_dict(tree, name)
    if node is None:
        target = f"an assignment to '{name}'" if name else "a dictionary literal"
        raise ConfigurationError(f"Settings file '{file_path}' does not contain {target}.")
    try:
        value = ast.literal_eval(node)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(
            f"Settings file '{file_path}' may only contain literal values."
        ) from exc
    LOG.debug("Read %d key(s) from settings file %s", len(value), file_path)
    return {str(key): item for key, item in value.items()}


def require_keys(
    values: Mapping[str, Any],
    keys: Sequence[str],
    *,
    source: str,
) -> None:
    """Raise ``ConfigurationError`` naming every key missing from ``values``."""

    missing = [key for key in keys if values.get(key) in (None, "")]
    if missing:
        joined = ", ".join(missing)
        raise ConfigurationError(f"{source} is missing required key(s): {joined}.")


def _find_dict(tree: ast.Module, name: str | None) -> ast.Dict | None:
    for statement in tree.body:
        if isinstance(statement, ast.Expr) and name is None:
            if isinstance(statement.value, ast.Dict):
                return statement.value
            continue
        if isinstance(statement, ast.Assign):
            targets = [target.id for target in statement.targets if isinstance(target, ast.Name)]
            value = statement.value
        elif isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
            targets = [statement.target.id]
            value = statement.value
        else:
            continue
        if not isinstance(value, ast.Dict):
            continue
        if name is None or name in targets:
            return value
    return None


__all__ = ["read_settings_file", "require_keys"]
