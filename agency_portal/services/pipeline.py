from __future__ import annotations

import logging
from pathlib import Path

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import TableConfig
from ..models.error_record import STAGE_PARSE, STAGE_VALIDATION, ErrorRecord
from ..models.import_record import ImportType
from ..models.import_result import CommitResult, ValidationResult, ValidRow
from ..models.parsed_row import ParsedRow
from ..tabular.reader import ImportFileError, UnsupportedFileTypeError, check_extension, read_rows
from .commit import TableStore, commit_records
from .validation import validate_rows

"""Import session orchestration (select -> parse -> validate, then commit).

An ImportSession mirrors one upload surface: the user picks an import type and
a file, reviews the validation outcome, then explicitly commits. Stages never
overlap: select_file() runs sniff/parse/validate to completion and commit() is
a separate call. After a commit the session is cleared whatever the outcome,
so already committed rows cannot be submitted twice from the same upload.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportSession",
    "NothingToImportError",
    "ImportBlockedError",
]


class NothingToImportError(Exception):
    """Raised by commit() when no valid rows are loaded."""


class ImportBlockedError(Exception):
    """Raised by commit() while validation errors are pending."""


class ImportSession:
    def __init__(
        self,
        store: TableStore,
        *,
        import_type: ImportType = ImportType.CLIENTS,
        tables: TableConfig | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.store = store
        self.import_type = import_type
        self.tables = tables or TableConfig()
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self.file: Path | None = None
        self.validation: ValidationResult | None = None

    @property
    def valid_rows(self) -> list[ValidRow]:
        return list(self.validation.valid) if self.validation else []

    @property
    def invalid_rows(self) -> list[ParsedRow]:
        return list(self.validation.invalid) if self.validation else []

    @property
    def errors(self) -> list[str]:
        return list(self.validation.errors) if self.validation else []

    @property
    def target_table(self) -> str:
        return self.tables.for_import_type(self.import_type.value)

    def reset(self) -> None:
        self.file = None
        self.validation = None

    def change_type(self, import_type: ImportType) -> None:
        """Switch the import type; any loaded file is discarded."""
        self.import_type = import_type
        self.reset()

    def select_file(self, path: Path) -> ValidationResult:
        """Sniff, parse and validate path.

        Raises:
            UnsupportedFileTypeError: extension not allowed (session untouched)
            ImportFileError: unreadable file or fewer than two logical rows
                (session cleared)
        """
        try:
            check_extension(path)
        except UnsupportedFileTypeError as e:
            self._log_file_error(path, "UNSUPPORTED_FILE_TYPE", str(e))
            raise

        self.file = path
        self.validation = None
        try:
            rows = read_rows(path)
        except ImportFileError as e:
            self._log_file_error(path, "PARSE_ERROR", str(e))
            self.reset()
            raise

        result = validate_rows(rows, self.import_type)
        for row in result.invalid:
            self.error_log.append(
                ErrorRecord.create(
                    file=path.name,
                    import_type=self.import_type.value,
                    row=row.row_index,
                    stage=STAGE_VALIDATION,
                    error_type="ROW_VALIDATION",
                    message=", ".join(row.validation_errors),
                )
            )
        self.validation = result

        if result.errors:
            logger.warning(f"Found {len(result.errors)} validation errors in {path.name}")
        else:
            logger.info(f"Successfully parsed {len(result.valid)} rows from {path.name}")
        return result

    def commit(self, *, skip_invalid: bool = False) -> CommitResult:
        """Upsert the valid rows, then clear the session.

        Args:
            skip_invalid: commit the valid rows even though other rows failed
                validation (the invalid ones are never written)

        Raises:
            NothingToImportError: no valid rows loaded
            ImportBlockedError: validation errors pending and skip_invalid is False
        """
        if not self.valid_rows:
            raise NothingToImportError("No valid data to import")
        if self.errors and not skip_invalid:
            raise ImportBlockedError(
                f"{len(self.errors)} validation error(s) found; fix the file or skip invalid rows"
            )

        file_name = self.file.name if self.file else ""
        try:
            result = commit_records(
                self.store,
                self.target_table,
                self.valid_rows,
                import_type=self.import_type.value,
                file_name=file_name,
                error_log=self.error_log,
            )
        finally:
            self.reset()

        if result.success_count > 0:
            logger.info(f"Successfully imported {result.success_count} {self.import_type.value}")
        if result.errors:
            logger.error(f"Failed to import {result.failed_count} rows")
            for message in result.errors:
                logger.debug(message)
        return result

    def _log_file_error(self, path: Path, error_type: str, message: str) -> None:
        self.error_log.append(
            ErrorRecord.create(
                file=path.name,
                import_type=self.import_type.value,
                row=-1,
                stage=STAGE_PARSE,
                error_type=error_type,
                message=message,
            )
        )
