from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from agency_portal.models.config_models import DatabaseConfig

"""PostgreSQL connection helpers.

Connection parameters are resolved in this order:
    1. `.env` (loaded with override=True, so it wins over the process env)
    2. DATABASE_URL / PGDSN as a full DSN, else PGHOST / PGPORT / PGUSER /
       PGPASSWORD / PGDATABASE
    3. the `database` section of config/portal.yml for anything still missing
"""

logger = logging.getLogger(__name__)

__all__ = [
    "load_env_file",
    "resolve_dsn",
    "db_connection",
]


def load_env_file(path: Path = Path(".env"), override: bool = True) -> None:
    """Load .env using python-dotenv. A failure only warns."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        logger.warning(f"failed to load .env via python-dotenv: {e}")


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield an autocommit psycopg2 connection.

    Autocommit leaves transaction boundaries to the caller (the commit loop
    issues BEGIN / COMMIT per row; the alert subscription needs LISTEN to
    take effect immediately).
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    try:
        conn.autocommit = True
        yield conn
    finally:
        try:
            conn.close()
        except Exception as e:
            logger.debug(f"closing connection failed: {e}")
