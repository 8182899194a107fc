"""ZOON exceptions."""

from __future__ import annotations


class ZoonError(ValueError):
    """Base error for ZOON encoding and decoding."""


class ZoonEncodeError(ZoonError):
    """Raised when the input contains a value ZOON cannot represent."""


class ZoonSchemaError(ZoonError):
    """Raised when a caller-supplied schema does not fit the data."""


class ZoonDecodeError(ZoonError):
    """Raised when text is not valid ZOON.

    Carries the 1-based line and column of the offending region when known.
    """

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None) -> None:
        self.message = message
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"{message} (line {line}, column {column})"
        elif line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)
