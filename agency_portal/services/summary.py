from __future__ import annotations

from ..models.import_result import CommitResult, ValidationResult

"""SUMMARY line rendering for the import CLI.

Format:
SUMMARY type={type} rows={rows} valid={valid} invalid={invalid}
committed={committed} failed={failed} elapsed_sec={elapsed}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(
    import_type: str,
    validation: ValidationResult,
    commit: CommitResult | None,
) -> str:
    """Render a SUMMARY line.

    commit is None when nothing was committed (dry validation or blocked run);
    committed/failed then read 0.

    Examples:
        >>> from agency_portal.models.import_result import ValidationResult
        >>> render_summary_line("clients", ValidationResult([], [], []), None)
        'SUMMARY type=clients rows=0 valid=0 invalid=0 committed=0 failed=0 elapsed_sec=0'
    """
    committed = commit.success_count if commit else 0
    failed = commit.failed_count if commit else 0
    elapsed = commit.elapsed_seconds if commit else 0.0
    return (
        f"SUMMARY type={import_type} "
        f"rows={validation.total_rows} "
        f"valid={len(validation.valid)} "
        f"invalid={len(validation.invalid)} "
        f"committed={committed} "
        f"failed={failed} "
        f"elapsed_sec={_format_seconds(elapsed)}"
    )
