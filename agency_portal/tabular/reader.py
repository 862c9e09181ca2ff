from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import pandas as pd

from agency_portal.models.parsed_row import ParsedRow

"""Uploaded file reader (select & sniff + parse stages).

- Only .csv / .xlsx / .xls are accepted, by extension (no content sniffing).
- The first non-empty line is the header (lower-cased, trimmed).
- Every later line maps positional values onto the header names.
- Lines whose fields are all blank are dropped silently.
- row_index is the 1-based source line, so numbering survives dropped lines.

pandas reads both formats. CSV is read with dtype=str / keep_default_na=False
so cells such as "NA" or "null" reach validation as typed by the user.
"""

__all__ = [
    "ALLOWED_EXTENSIONS",
    "ImportFileError",
    "UnsupportedFileTypeError",
    "check_extension",
    "read_frame",
    "frame_to_rows",
    "read_rows",
]

ALLOWED_EXTENSIONS = ("csv", "xlsx", "xls")
UNSUPPORTED_MESSAGE = "Please select a CSV or Excel file (.csv, .xlsx, .xls)"


class ImportFileError(Exception):
    """Fatal input error; processing stops before any row is examined."""


class UnsupportedFileTypeError(ImportFileError):
    """Raised when the file extension is outside ALLOWED_EXTENSIONS."""


def check_extension(path: Path) -> str:
    """Return the lower-cased extension or raise UnsupportedFileTypeError."""
    ext = path.suffix.lower().lstrip(".")
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError(UNSUPPORTED_MESSAGE)
    return ext


def read_frame(path: Path) -> pd.DataFrame:
    """Read the raw grid of an accepted file without header inference.

    Spreadsheets: first sheet only. Index i of the returned frame is source
    line i + 1.
    """
    ext = check_extension(path)
    if not path.exists():
        raise ImportFileError(f"Failed to read file: {path.name}")
    try:
        if ext == "csv":
            return _read_csv(path)
        with pd.ExcelFile(path) as xls:
            if not xls.sheet_names:
                raise ImportFileError(f"{path.name}: workbook has no sheets")
            return xls.parse(xls.sheet_names[0], header=None, keep_default_na=False, na_values=[""])
    except ImportFileError:
        raise
    except pd.errors.EmptyDataError as e:
        raise ImportFileError(_too_short_message(ext)) from e
    except Exception as e:
        raise ImportFileError(f"Failed to parse file: {e}") from e


def _read_csv(path: Path) -> pd.DataFrame:
    """Read a CSV whose lines may carry more cells than the first one.

    The C parser fixes the column count from the first line and rejects any
    wider line, so the widest line is measured first and the grid is read
    again with that many columns. Cells past the header are ignored later.
    """
    options: dict[str, Any] = dict(
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        encoding="utf-8-sig",
        engine="python",
    )
    widths: list[int] = []

    def _measure(bad_line: list[str]) -> None:
        widths.append(len(bad_line))

    first = pd.read_csv(path, on_bad_lines=_measure, **options)
    if not widths:
        return first
    width = max([first.shape[1], *widths])
    return pd.read_csv(path, names=list(range(width)), **options)


def _too_short_message(ext: str) -> str:
    kind = "CSV" if ext == "csv" else "Excel"
    return f"{kind} file must have at least a header row and one data row"


def _cell_text(value: Any) -> str:
    """Render one cell as trimmed text (None/NaN -> '', 85.0 -> '85')."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value).strip()


def frame_to_rows(df: pd.DataFrame, ext: str = "csv") -> list[ParsedRow]:
    """Map a raw grid onto header names.

    Raises:
        ImportFileError: fewer than two logical rows (header + data row).
    """
    lines: list[tuple[int, list[str]]] = []
    for i, raw in enumerate(df.itertuples(index=False, name=None)):
        cells = [_cell_text(v) for v in raw]
        if any(cells):
            lines.append((i + 1, cells))

    if len(lines) < 2:
        raise ImportFileError(_too_short_message(ext))

    _, header_cells = lines[0]
    headers = [h.lower() for h in header_cells]

    rows: list[ParsedRow] = []
    for line_no, cells in lines[1:]:
        fields: dict[str, str] = {}
        for pos, header in enumerate(headers):
            if not header:
                continue
            fields[header] = cells[pos] if pos < len(cells) else ""
        row = ParsedRow(row_index=line_no, fields=fields)
        # data beyond the header columns only does not count as data
        if row.is_blank():
            continue
        rows.append(row)
    return rows


def read_rows(path: Path) -> list[ParsedRow]:
    """Run the select & sniff and parse stages for one uploaded file."""
    ext = check_extension(path)
    return frame_to_rows(read_frame(path), ext)
