from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
from jsonschema.exceptions import ValidationError

from agency_portal.logging.error_log import SCHEMA_PATH, ErrorLogBuffer
from agency_portal.models.error_record import STAGE_COMMIT, STAGE_PARSE, ErrorRecord

"""Error log JSON schema contract test."""


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_flushed_records_match_schema(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.append(ErrorRecord.create("c.csv", "clients", -1, STAGE_PARSE, "UNSUPPORTED_FILE_TYPE", "bad ext"))
    buf.append(ErrorRecord.create("c.csv", "clients", 4, STAGE_COMMIT, "TABLE_STORE_ERROR", "Row 4: boom"))
    path = buf.flush()
    schema = _schema()
    for line in path.read_text(encoding="utf-8").splitlines():
        jsonschema.validate(json.loads(line), schema)


def test_extra_key_rejected():
    record = json.loads(
        ErrorRecord.create("c.csv", "clients", 2, STAGE_PARSE, "PARSE_ERROR", "x").to_json_line()
    )
    record["sheet"] = "Sheet1"
    with pytest.raises(ValidationError):
        jsonschema.validate(record, _schema())


@pytest.mark.parametrize(
    "field, value",
    [
        ("stage", "UPLOAD"),
        ("import_type", "alerts"),
        ("row", -2),
        ("error_type", "rowValidation"),
    ],
)
def test_invalid_values_rejected(field: str, value: object):
    record = json.loads(
        ErrorRecord.create("c.csv", "clients", 2, STAGE_PARSE, "PARSE_ERROR", "x").to_json_line()
    )
    record[field] = value
    with pytest.raises(ValidationError):
        jsonschema.validate(record, _schema())
