"""Database connection settings."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from os import PathLike
from typing import Any, Mapping

_FIELDS = (("host", "host"), ("port", "port"), ("user", "user"),
           ("password", "password"), ("db_name", "dbName"))


@dataclass
class DBConfig:
    """MySQL connection settings."""

    host: str = ""
    port: str = ""
    user: str = ""
    password: str = ""
    db_name: str = ""

    def dsn(self) -> str:
        """Return the MySQL data source name for these settings."""
        return (
            f"{self.user}:{self.password}@tcp({self.host}:{self.port})/{self.db_name}"
            "?charset=utf8mb4&parseTime=True&loc=Local"
        )


def new_db_config(settings: Mapping[str, Any]) -> DBConfig:
    """Build settings from the ``mysql`` section of a loaded configuration.

    Raises ValueError if any of the five fields is missing or empty.
    """
    section = settings.get("mysql") or {}
    if not isinstance(section, Mapping):
        raise ValueError("mysql config is empty")
    values = {}
    for attr, name in _FIELDS:
        raw = section.get(name)
        text = "" if raw is None else str(raw)
        if not text:
            raise ValueError("mysql config is empty")
        values[attr] = text
    return DBConfig(**values)


def load_db_config(path: str | PathLike[str]) -> DBConfig:
    """Read settings from a TOML file; absent fields are left empty.

    Raises OSError if the file cannot be read, tomllib.TOMLDecodeError if it is
    not TOML, and ValueError if a field is not a string.
    """
    with open(path, "rb") as handle:
        document = tomllib.load(handle)
    values = {}
    for attr, name in _FIELDS:
        raw = document.get(name, "")
        if not isinstance(raw, str):
            raise ValueError(f"field {name!r} must be a string")
        values[attr] = raw
    return DBConfig(**values)