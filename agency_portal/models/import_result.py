from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .import_record import ImportRecord
from .parsed_row import ParsedRow

"""Result models for the validate and commit stages of an import."""

__all__ = [
    "ValidRow",
    "ValidationResult",
    "CommitResult",
]


@dataclass(frozen=True)
class ValidRow:
    """A row that passed validation together with its typed projection."""
    row: ParsedRow
    record: ImportRecord

    @property
    def row_index(self) -> int:
        return self.row.row_index


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of the validate stage.

    errors holds one joined message per invalid row (``Row 3: Missing email,
    Invalid client_type: foo``) in source order.
    """
    valid: list[ValidRow]
    invalid: list[ParsedRow]
    errors: list[str]

    @property
    def total_rows(self) -> int:
        return len(self.valid) + len(self.invalid)

    @property
    def records(self) -> list[ImportRecord]:
        return [v.record for v in self.valid]


@dataclass(frozen=True)
class CommitResult:
    """Aggregated outcome of one commit run.

    success_count == inserted + updated. errors holds ``Row {n}: {message}``
    for every row whose write failed.
    """
    success_count: int
    inserted: int
    updated: int
    errors: list[str] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def failed_count(self) -> int:
        return len(self.errors)

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
