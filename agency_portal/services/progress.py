from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Commit progress display with tqdm (TTY only).

The commit loop is a sequential read-then-write per row, so on large uploads
the user sees a row counter. In non-TTY environments (CI, piped output) the
bar is disabled to avoid ANSI control sequence spam.
"""

__all__ = [
    "CommitProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class CommitProgress:
    """Row progress bar for one commit run."""

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.done = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, *, success: int, failed: int) -> None:
        """Count one finished row and refresh the success/failed postfix."""
        self.done += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(success=success, failed=failed)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> CommitProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
