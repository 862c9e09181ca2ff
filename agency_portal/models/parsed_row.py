from __future__ import annotations

from dataclasses import dataclass, field

"""ParsedRow model for the tabular import pipeline.

A ParsedRow is one data line of an uploaded file after header mapping.
row_index refers to the original source line (header = row 1), so error
messages point at the line the user sees in their spreadsheet even when blank
lines were dropped in between.
"""

__all__ = [
    "ParsedRow",
]


@dataclass
class ParsedRow:
    """Single source row mapped onto lower-cased header names.

    Unlike the frozen record types, a ParsedRow is annotated in place during
    validation (validation_errors) and then either projected into an
    ImportRecord or kept for user review.
    """
    row_index: int  # 1-based source line (header = 1)
    fields: dict[str, str]  # header -> trimmed cell text
    validation_errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def get(self, *names: str) -> str:
        """Return the first non-empty value among header aliases, else ''."""
        for name in names:
            value = self.fields.get(name, "")
            if value:
                return value
        return ""

    def is_blank(self) -> bool:
        return all(not v for v in self.fields.values())
