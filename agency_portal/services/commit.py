from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from ..db.table_store import INSERTED, UpsertOutcome
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import STAGE_COMMIT, ErrorRecord
from ..models.import_result import CommitResult, ValidRow
from .progress import CommitProgress
from .validation import format_row_error

"""Commit stage: upsert valid rows one by one.

Rows are written sequentially, each in its own transaction. A failing row is
rolled back, recorded as ``Row {n}: {message}`` and the loop moves on; rows
that already committed stay committed. There is no retry: the user re-uploads
to try again, and because the write is keyed by email a re-upload of committed
rows updates them instead of duplicating them.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "TableStore",
    "commit_records",
]


class TableStore(Protocol):
    def begin(self) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
    def upsert_by_email(self, table: str, values: Any) -> UpsertOutcome: ...


def _commit_one(store: TableStore, table: str, valid_row: ValidRow) -> UpsertOutcome:
    store.begin()
    try:
        outcome = store.upsert_by_email(table, valid_row.record.to_row())
        store.commit()
    except Exception:
        try:
            store.rollback()
        except Exception as rollback_e:
            logger.warning(f"rollback failed for row {valid_row.row_index}: {rollback_e}")
        raise
    return outcome


def commit_records(
    store: TableStore,
    table: str,
    rows: Sequence[ValidRow],
    *,
    import_type: str,
    file_name: str = "",
    error_log: ErrorLogBuffer | None = None,
) -> CommitResult:
    """Upsert every valid row by email and report per-row outcomes.

    Args:
        store: PostgresTableStore / InMemoryTableStore
        table: target table name
        rows: validated rows in source order
        import_type: "clients" or "employees" (error log field)
        file_name: uploaded file name (error log field)
        error_log: optional buffer receiving one COMMIT record per failed row

    Returns:
        CommitResult with success/insert/update counts and failure messages
    """
    start_time = datetime.now(UTC)
    inserted = 0
    updated = 0
    errors: list[str] = []

    with CommitProgress(len(rows), description=f"Importing {import_type}") as progress:
        for valid_row in rows:
            try:
                outcome = _commit_one(store, table, valid_row)
            except Exception as e:
                message = str(e) or "Failed to import"
                errors.append(format_row_error(valid_row.row_index, [message]))
                logger.debug(f"row {valid_row.row_index} failed: {message}")
                if error_log is not None:
                    error_log.append(
                        ErrorRecord.create(
                            file=file_name,
                            import_type=import_type,
                            row=valid_row.row_index,
                            stage=STAGE_COMMIT,
                            error_type=_snake(type(e).__name__),
                            message=message,
                        )
                    )
            else:
                if outcome.action == INSERTED:
                    inserted += 1
                else:
                    updated += 1
            progress.advance(success=inserted + updated, failed=len(errors))

    return CommitResult(
        success_count=inserted + updated,
        inserted=inserted,
        updated=updated,
        errors=errors,
        start_time=start_time,
        end_time=datetime.now(UTC),
    )


def _snake(name: str) -> str:
    """TableStoreError -> TABLE_STORE_ERROR"""
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i and not name[i - 1].isupper():
            out.append("_")
        out.append(ch.upper())
    return "".join(out)
