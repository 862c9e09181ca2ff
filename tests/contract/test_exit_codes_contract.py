from __future__ import annotations

from pathlib import Path

import pytest

from agency_portal.cli import main as cli_main

"""Exit code contract tests: 0 all committed, 2 partial, 1 fatal."""

HEADER = "company_name,contact_name,email,client_type\n"


@pytest.fixture(autouse=True)
def no_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def test_exit_code_fatal_unsupported_file(temp_workdir: Path, capsys):
    p = temp_workdir / "data" / "clients.json"
    p.write_text("{}", encoding="utf-8")
    assert cli_main(["import", str(p)]) == 1
    assert "ERROR Failed to parse file: Please select a CSV or Excel file" in capsys.readouterr().out


def test_exit_code_fatal_header_only(temp_workdir: Path, make_csv):
    assert cli_main(["import", str(make_csv("c.csv", HEADER))]) == 1


def test_exit_code_all_success(temp_workdir: Path, make_csv, capsys):
    path = make_csv("c.csv", HEADER + "Acme,John,john@acme.com,brand_owner\n")
    assert cli_main(["import", str(path)]) == 0
    assert "SUMMARY type=clients rows=1 valid=1 invalid=0 committed=1 failed=0" in capsys.readouterr().out


def test_exit_code_validation_errors(temp_workdir: Path, make_csv):
    path = make_csv("c.csv", HEADER + "Acme,John,john@acme.com,brand_owner\nBad,Row,,brand_owner\n")
    assert cli_main(["import", str(path)]) == 2
    assert cli_main(["import", "--skip-invalid", str(path)]) == 2


def test_exit_code_nothing_valid(temp_workdir: Path, make_csv, capsys):
    path = make_csv("c.csv", HEADER + "Bad,Row,,brand_owner\n")
    assert cli_main(["import", str(path)]) == 2
    assert "ERROR No valid data to import" in capsys.readouterr().out
