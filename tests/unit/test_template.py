from __future__ import annotations

from pathlib import Path

import pytest

from agency_portal.models.import_record import ImportType
from agency_portal.services.validation import validate_rows
from agency_portal.tabular.reader import read_rows
from agency_portal.tabular.template import template_rows, write_template


@pytest.mark.parametrize("import_type", list(ImportType))
def test_written_template_validates_cleanly(temp_workdir: Path, import_type: ImportType):
    path = write_template(import_type, temp_workdir / "out")
    assert path.name == f"{import_type.value}_template.xlsx"
    rows = read_rows(path)
    assert len(rows) == 1
    result = validate_rows(rows, import_type)
    assert result.errors == []
    assert len(result.valid) == 1


def test_client_template_header():
    header = template_rows(ImportType.CLIENTS)[0]
    assert header[:4] == ["company_name", "contact_name", "email", "client_type"]


def test_template_rows_are_copies():
    rows = template_rows(ImportType.EMPLOYEES)
    rows[0].append("extra")
    assert "extra" not in template_rows(ImportType.EMPLOYEES)[0]
