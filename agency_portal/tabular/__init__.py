from .reader import (
    ALLOWED_EXTENSIONS,
    ImportFileError,
    UnsupportedFileTypeError,
    check_extension,
    read_rows,
)
from .template import write_template

__all__ = [
    "ALLOWED_EXTENSIONS",
    "ImportFileError",
    "UnsupportedFileTypeError",
    "check_extension",
    "read_rows",
    "write_template",
]
