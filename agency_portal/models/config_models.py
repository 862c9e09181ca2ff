from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

"""Config dataclasses for the agency portal.

Loaded from config/portal.yml by agency_portal.config.loader. Environment
variables take precedence over the database section (see db.connection).
"""

__all__ = [
    "DatabaseConfig",
    "TableConfig",
    "SessionConfig",
    "PortalConfig",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback used when no env variables are set."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class TableConfig:
    """Target table names per entity (identifier pattern enforced by schema)."""
    clients: str = "clients"
    employees: str = "employees"
    alerts: str = "alerts"

    def for_import_type(self, import_type: str) -> str:
        return {"clients": self.clients, "employees": self.employees}[import_type]


@dataclass(frozen=True)
class SessionConfig:
    idle_timeout_seconds: float = 60.0
    login_route: str = "/login"


@dataclass(frozen=True)
class PortalConfig:
    """Root configuration object."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    tables: TableConfig = field(default_factory=TableConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logs_directory: Path = Path("./logs")
    settings_path: Path = Path("./config/settings.json")
