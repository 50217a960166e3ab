"""
Exceptions raised while importing bank and brokerage statements.

Structural errors abort a whole parse and are turned into a failed
ParseOutcome by the service entry points. Row errors only ever cause the
offending row to be skipped.
"""
from typing import List, Optional, Sequence


class StatementImportError(Exception):
    """Base class for statement import errors."""
    pass


class StructuralParseError(StatementImportError):
    """The input cannot be interpreted at all (empty, no rows, no usable columns)."""
    pass


class ColumnResolutionError(StructuralParseError):
    """A column mapping names columns that do not exist in the header row."""

    def __init__(self, missing: Sequence[str], available: Sequence[str], message: Optional[str] = None):
        self.missing: List[str] = list(missing)
        self.available: List[str] = list(available)
        if message is None:
            message = (
                f"Missing required columns: {', '.join(self.missing)}. "
                f"Available columns: {', '.join(self.available)}"
            )
        super().__init__(message)


class RowParseError(StatementImportError):
    """A single data row could not be normalized into a transaction."""

    def __init__(self, reason: str, line_number: Optional[int] = None):
        self.reason = reason
        self.line_number = line_number
        if line_number is not None:
            super().__init__(f"Line {line_number}: {reason}")
        else:
            super().__init__(reason)


class BankFormatConflictError(StatementImportError):
    """Registering a bank format would make registry order ambiguous."""
    pass
