from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Records with row=-1 describe file-level failures (unsupported extension,
unreadable file) where no source row applies. The record layout is fixed by
agency_portal/logging/error_log_schema.json.
"""

__all__ = [
    "ErrorRecord",
    "STAGE_PARSE",
    "STAGE_VALIDATION",
    "STAGE_COMMIT",
]

STAGE_PARSE = "PARSE"
STAGE_VALIDATION = "VALIDATION"
STAGE_COMMIT = "COMMIT"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name
        import_type: "clients" or "employees"
        row: 1-based source row. -1 for file-level errors
        stage: PARSE | VALIDATION | COMMIT
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description (validation text or DB message)
    """
    timestamp: str
    file: str
    import_type: str
    row: int
    stage: str
    error_type: str
    message: str

    @staticmethod
    def create(
        file: str, import_type: str, row: int, stage: str, error_type: str, message: str
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            import_type=import_type,
            row=row,
            stage=stage,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict keeps the key set closed
        return json.dumps(asdict(self), ensure_ascii=False)
