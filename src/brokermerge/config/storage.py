"""Location of the brokermerge database.

Exchange rates, security reference data and broker preferences all live in
one database. ``DATABASE_URI`` points it anywhere SQLAlchemy can reach;
otherwise a SQLite file is kept in the per-user data directory, which
``BROKERMERGE_DATA_DIR`` overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATA_DIR_ENV: Final[str] = "BROKERMERGE_DATA_DIR"
DATABASE_FILENAME: Final[str] = "brokermerge.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    # None when DATABASE_URI overrides the local SQLite file
    path: Path | None = None


def default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return base_path / "brokermerge"


def get_database_config() -> DatabaseConfig:
    """Resolve the database, creating the data directory for the SQLite default."""

    env_uri = os.getenv(DATABASE_URI_ENV)
    if env_uri and env_uri.strip():
        return DatabaseConfig(uri=env_uri.strip())

    env_dir = os.getenv(DATA_DIR_ENV)
    data_dir = (Path(env_dir) if env_dir else default_data_dir()).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / DATABASE_FILENAME
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{path}", path=path)


def get_database_uri() -> str:
    return get_database_config().uri
