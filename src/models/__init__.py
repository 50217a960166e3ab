"""
Models package for the statement import parser.
"""

from .transaction import (
    NormalizedTransaction,
    ParseOutcome,
)

from .column_mapping import (
    AmountType,
    CanonicalField,
    ColumnMapping,
    ResolvedColumns,
)

from .bank_format import (
    BankFormatInfo,
    BankFormatSpec,
    CanonicalRow,
)

from .preview import (
    ColumnInfo,
    RawPreview,
)

from .statement_format import StatementFormat

__all__ = [
    'NormalizedTransaction',
    'ParseOutcome',
    'AmountType',
    'CanonicalField',
    'ColumnMapping',
    'ResolvedColumns',
    'BankFormatInfo',
    'BankFormatSpec',
    'CanonicalRow',
    'ColumnInfo',
    'RawPreview',
    'StatementFormat',
]
