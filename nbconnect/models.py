"""Shared dataclasses used across credential/descriptor/session modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NewType

ConnectionDescriptor = NewType("ConnectionDescriptor", str)


@dataclass(frozen=True, slots=True)
class ConnectionParameters:
    """Non-secret fields needed to reach a SQL Server database.

    A bare driver name is stored wrapped in braces, the form ODBC expects.
    """

    driver: str
    host: str
    port: int
    database: str

    def __post_init__(self) -> None:
        driver = self.driver
        if isinstance(driver, str) and driver.strip() and not (
            driver.startswith("{") and driver.endswith("}")
        ):
            object.__setattr__(self, "driver", f"{{{driver}}}")


@dataclass(frozen=True, slots=True)
class Credentials:
    """Username/password pair; the password never shows up in ``repr``."""

    username: str
    password: str = field(repr=False)


__all__ = ["ConnectionDescriptor", "ConnectionParameters", "Credentials"]
