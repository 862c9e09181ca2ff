from __future__ import annotations
from pathlib import Path

import pytest

from agency_portal.tabular.reader import (
    ImportFileError,
    UnsupportedFileTypeError,
    check_extension,
    read_rows,
)


@pytest.mark.parametrize("name", ["clients.txt", "clients.json", "clients", "clients.csv.bak", "x.xlsm"])
def test_unsupported_extension_rejected_before_parsing(temp_workdir: Path, name: str):
    p = temp_workdir / name
    p.write_text("company_name\nAcme\n", encoding="utf-8")
    with pytest.raises(UnsupportedFileTypeError) as e:
        read_rows(p)
    assert str(e.value) == "Please select a CSV or Excel file (.csv, .xlsx, .xls)"


def test_check_extension_is_case_insensitive():
    assert check_extension(Path("A.CSV")) == "csv"
    assert check_extension(Path("b.XlSx")) == "xlsx"
    assert check_extension(Path("legacy.xls")) == "xls"


def test_csv_header_lowercased_and_trimmed(make_csv):
    p = make_csv("c.csv", " Company_Name , Contact Name ,EMAIL\nAcme , John , john@acme.com\n")
    rows = read_rows(p)
    assert len(rows) == 1
    assert rows[0].row_index == 2
    assert rows[0].fields == {"company_name": "Acme", "contact name": "John", "email": "john@acme.com"}


def test_csv_missing_trailing_cells_become_empty(make_csv):
    p = make_csv("c.csv", "name,email,role\nJane,jane@x.com\n")
    rows = read_rows(p)
    assert rows[0].fields == {"name": "Jane", "email": "jane@x.com", "role": ""}


def test_csv_keeps_na_like_strings(make_csv):
    p = make_csv("c.csv", "name,email,role\nNA,null@x.com,None\n")
    rows = read_rows(p)
    assert rows[0].fields["name"] == "NA"
    assert rows[0].fields["role"] == "None"


def test_csv_empty_rows_dropped_and_source_numbering_kept(make_csv):
    text = "name,email,role\n,,\nJane,jane@x.com,lead\n\nBob,bob@x.com,employee\n"
    rows = read_rows(make_csv("c.csv", text))
    assert [r.fields["name"] for r in rows] == ["Jane", "Bob"]
    assert [r.row_index for r in rows] == [3, 5]


def test_csv_quoted_comma_stays_in_cell(make_csv):
    rows = read_rows(make_csv("c.csv", 'company_name,contact_name\n"Acme, Inc.",John\n'))
    assert rows[0].fields["company_name"] == "Acme, Inc."


@pytest.mark.parametrize("text", ["", "name,email,role\n", "name,email,role\n\n,,\n"])
def test_fewer_than_two_logical_rows_is_fatal(make_csv, text: str):
    with pytest.raises(ImportFileError) as e:
        read_rows(make_csv("c.csv", text))
    assert "at least a header row and one data row" in str(e.value)


def test_missing_file_is_fatal(temp_workdir: Path):
    with pytest.raises(ImportFileError):
        read_rows(temp_workdir / "nope.csv")


def test_excel_first_sheet_only(make_excel):
    p = make_excel(
        "clients.xlsx",
        [
            ["company_name", "contact_name", "email", "client_type", "health_score", "mrr"],
            ["Acme", "John", "john@acme.com", "brand_owner", 85, 5000.5],
        ],
        extra_sheets={"Other": [["name"], ["ignored"]]},
    )
    rows = read_rows(p)
    assert len(rows) == 1
    assert rows[0].row_index == 2
    assert rows[0].fields["company_name"] == "Acme"
    # numeric cells come back as text, integral floats without ".0"
    assert rows[0].fields["health_score"] == "85"
    assert rows[0].fields["mrr"] == "5000.5"


def test_excel_all_empty_rows_dropped(make_excel):
    p = make_excel(
        "employees.xlsx",
        [
            ["name", "email", "role"],
            ["Jane", "jane@x.com", "lead"],
            [None, None, None],
            ["Bob", "bob@x.com", "employee"],
        ],
    )
    rows = read_rows(p)
    assert len(rows) == 2
    assert rows[0].row_index == 2
    assert rows[1].fields["name"] == "Bob"


def test_excel_header_only_is_fatal(make_excel):
    p = make_excel("e.xlsx", [["name", "email", "role"]])
    with pytest.raises(ImportFileError) as e:
        read_rows(p)
    assert str(e.value).startswith("Excel file must have")


def test_csv_trailing_comma_row_kept(make_csv):
    text = (
        "company_name,contact_name,email,client_type\n"
        "Acme,John,john@acme.com,brand_owner\n"
        "Beta,Jane,jane@beta.com,wholesaler,\n"
    )
    rows = read_rows(make_csv("c.csv", text))
    assert [r.row_index for r in rows] == [2, 3]
    assert rows[1].fields == {
        "company_name": "Beta",
        "contact_name": "Jane",
        "email": "jane@beta.com",
        "client_type": "wholesaler",
    }


def test_csv_cells_past_header_ignored(make_csv):
    text = "name,email,role\nJane,jane@x.com,lead\nBob,bob@x.com,lead,ops,extra\n\nAnn,ann@x.com\n"
    rows = read_rows(make_csv("e.csv", text))
    assert [r.row_index for r in rows] == [2, 3, 5]
    assert rows[1].fields == {"name": "Bob", "email": "bob@x.com", "role": "lead"}
    assert rows[2].fields["role"] == ""
