from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Iterable

from ..models.import_record import (
    DEFAULT_HEALTH_SCORE,
    DEFAULT_MRR,
    DEFAULT_PACKAGE,
    ClientRecord,
    ClientType,
    EmployeeRecord,
    ImportRecord,
    ImportType,
)
from ..models.import_result import ValidationResult, ValidRow
from ..models.parsed_row import ParsedRow

"""Row validation for the tabular import pipeline.

Every rule of a row runs (no short-circuit); the messages are joined into one
``Row {n}: ...`` line per invalid row. Invalid rows are kept with their errors
attached so they can be shown for review, but only valid rows are projected
into records and reach the commit stage.

Numeric columns are checked here as well: a health_score or mrr that does not
parse as a finite number rejects the row instead of reaching storage as NaN.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "EMAIL_PATTERN",
    "validate_row",
    "validate_rows",
    "to_record",
    "format_row_error",
]

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# canonical header first, then the human readable alias
COMPANY_NAME = ("company_name", "company name")
CONTACT_NAME = ("contact_name", "contact name")
CLIENT_TYPE = ("client_type", "client type")
HEALTH_SCORE = ("health_score", "health score")
MRR = ("mrr",)
PACKAGE = ("package",)


def format_row_error(row_index: int, messages: Iterable[str]) -> str:
    return f"Row {row_index}: {', '.join(messages)}"


def _parse_number(text: str) -> float | None:
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _check_email(row: ParsedRow, errors: list[str]) -> None:
    email = row.get("email")
    if not email:
        errors.append("Missing email")
    elif not EMAIL_PATTERN.fullmatch(email):
        errors.append("Invalid email format")


def _client_errors(row: ParsedRow) -> list[str]:
    errors: list[str] = []
    if not row.get(*COMPANY_NAME):
        errors.append("Missing company_name")
    if not row.get(*CONTACT_NAME):
        errors.append("Missing contact_name")
    _check_email(row, errors)

    client_type = row.get(*CLIENT_TYPE).lower()
    if not client_type:
        errors.append("Missing client_type")
    elif client_type not in ClientType.values():
        errors.append(f"Invalid client_type: {client_type}")

    health_score = row.get(*HEALTH_SCORE)
    if health_score and _parse_number(health_score) is None:
        errors.append(f"Invalid health_score: {health_score}")
    mrr = row.get(*MRR)
    if mrr and _parse_number(mrr) is None:
        errors.append(f"Invalid mrr: {mrr}")
    return errors


def _employee_errors(row: ParsedRow) -> list[str]:
    errors: list[str] = []
    if not row.get("name"):
        errors.append("Missing name")
    _check_email(row, errors)
    if not row.get("role"):
        errors.append("Missing role")
    return errors


_RULES: dict[ImportType, Callable[[ParsedRow], list[str]]] = {
    ImportType.CLIENTS: _client_errors,
    ImportType.EMPLOYEES: _employee_errors,
}


def validate_row(row: ParsedRow, import_type: ImportType) -> list[str]:
    """Run the rule set for import_type and attach the errors to row."""
    row.validation_errors = _RULES[import_type](row)
    return row.validation_errors


def to_record(row: ParsedRow, import_type: ImportType) -> ImportRecord:
    """Project a validated row into its typed record, applying defaults."""
    if import_type is ImportType.CLIENTS:
        health_score = row.get(*HEALTH_SCORE)
        mrr = row.get(*MRR)
        return ClientRecord(
            company_name=row.get(*COMPANY_NAME),
            contact_name=row.get(*CONTACT_NAME),
            email=row.get("email"),
            client_type=row.get(*CLIENT_TYPE).lower(),
            # truncate like an integer parse ("85.9" -> 85)
            health_score=int(_parse_number(health_score)) if health_score else DEFAULT_HEALTH_SCORE,
            mrr=_parse_number(mrr) if mrr else DEFAULT_MRR,
            package=row.get(*PACKAGE) or DEFAULT_PACKAGE,
        )
    return EmployeeRecord(
        name=row.get("name"),
        email=row.get("email"),
        role=row.get("role"),
    )


def validate_rows(rows: Iterable[ParsedRow], import_type: ImportType) -> ValidationResult:
    """Classify rows into valid (projected) and invalid (errors attached)."""
    valid: list[ValidRow] = []
    invalid: list[ParsedRow] = []
    errors: list[str] = []

    for row in rows:
        row_errors = validate_row(row, import_type)
        if row_errors:
            invalid.append(row)
            errors.append(format_row_error(row.row_index, row_errors))
        else:
            valid.append(ValidRow(row=row, record=to_record(row, import_type)))

    logger.debug(
        f"validated {len(valid) + len(invalid)} {import_type.value} rows: "
        f"valid={len(valid)} invalid={len(invalid)}"
    )
    return ValidationResult(valid=valid, invalid=invalid, errors=errors)
