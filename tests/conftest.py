# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from agency_portal.logging.init import reset_logging


@pytest.fixture(autouse=True)
def fresh_logging():
    # handler binds sys.stdout at setup time; rebind per test so capsys sees output
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
tables:
  clients: clients
  employees: employees
  alerts: alerts
session:
  idle_timeout_seconds: 60
  login_route: /login
logs_directory: ./logs
settings_path: ./config/settings.json
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "portal.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_csv(temp_workdir: Path):
    def _make(name: str, text: str) -> Path:
        p = temp_workdir / "data" / name
        p.write_text(text, encoding="utf-8")
        return p
    return _make


@pytest.fixture()
def make_excel(temp_workdir: Path):
    def _make(name: str, rows: list[list[object]], extra_sheets: dict[str, list[list[object]]] | None = None) -> Path:
        p = temp_workdir / "data" / name
        with pd.ExcelWriter(p, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
            for sheet, sheet_rows in (extra_sheets or {}).items():
                pd.DataFrame(sheet_rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return p
    return _make


