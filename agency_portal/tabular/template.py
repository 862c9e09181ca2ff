from __future__ import annotations

from pathlib import Path

import pandas as pd

from agency_portal.models.import_record import ImportType

"""Import template export.

A template is an .xlsx workbook with one sheet holding the canonical header
row and one example row. It is a convenience for users; the reader accepts any
header order and the documented aliases.
"""

__all__ = [
    "TEMPLATES",
    "template_rows",
    "write_template",
]

TEMPLATES: dict[ImportType, list[list[str]]] = {
    ImportType.CLIENTS: [
        ["company_name", "contact_name", "email", "client_type", "health_score", "mrr", "package"],
        ["Acme Corp", "John Doe", "john@acme.com", "brand_owner", "85", "5000", "Standard"],
    ],
    ImportType.EMPLOYEES: [
        ["name", "email", "role"],
        ["Jane Smith", "jane@amzdudes.com", "employee"],
    ],
}

SHEET_NAME = "Sheet1"


def template_rows(import_type: ImportType) -> list[list[str]]:
    return [list(r) for r in TEMPLATES[import_type]]


def write_template(import_type: ImportType, directory: Path = Path(".")) -> Path:
    """Write ``{type}_template.xlsx`` into directory and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{import_type.value}_template.xlsx"
    df = pd.DataFrame(template_rows(import_type))
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, header=False, index=False)
    return path
