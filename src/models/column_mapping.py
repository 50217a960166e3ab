"""
Column mapping models for delimited statement files.

A ColumnMapping binds canonical transaction fields to header names of a
specific file. It is either suggested by fuzzy header matching or supplied by
the caller after the user confirmed it.
"""
import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from typing_extensions import Self
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utils.errors import ColumnResolutionError


class AmountType(str, enum.Enum):
    """How the transaction amount is laid out in the file"""
    SINGLE = "single"  # one signed amount column
    SPLIT = "split"    # separate debit and credit columns


class CanonicalField(str, enum.Enum):
    """Canonical transaction attributes that source columns are mapped onto"""
    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    DEBIT = "debit"
    CREDIT = "credit"
    CATEGORY = "category"
    BALANCE = "balance"


class ColumnMapping(BaseModel):
    """
    Binding of canonical fields to source column names.

    Exactly one amount layout is populated: ``amount`` for single mode, or
    ``debit`` and ``credit`` for split mode.
    """
    date: str = Field(min_length=1)
    description: str = Field(min_length=1)
    amount: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None
    category: Optional[str] = None
    balance: Optional[str] = None
    amount_type: AmountType = Field(default=AmountType.SINGLE, alias="amountType")
    header_row: Optional[int] = Field(default=None, alias="headerRow", ge=0)

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra='forbid',
    )

    @field_validator('date', 'description', 'amount', 'debit', 'credit', 'category', 'balance', mode='before')
    @classmethod
    def blank_column_is_none(cls, v: Any) -> Any:
        # UIs send "" for an unselected dropdown
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @model_validator(mode='after')
    def check_amount_layout(self) -> Self:
        if self.amount_type == AmountType.SINGLE:
            if not self.amount:
                raise ValueError("Amount column is required for single amount type")
            if self.debit or self.credit:
                raise ValueError("Debit and credit columns cannot be set for single amount type")
        else:
            if not self.debit or not self.credit:
                raise ValueError("Debit and credit columns are required for split amount type")
            if self.amount:
                raise ValueError("Amount column cannot be set for split amount type")
        return self

    def bound_columns(self) -> List[Tuple[CanonicalField, str]]:
        """Return (canonical field, column name) pairs for every bound field."""
        pairs: List[Tuple[CanonicalField, str]] = []
        for canonical in CanonicalField:
            column = getattr(self, canonical.value)
            if column:
                pairs.append((canonical, column))
        return pairs

    def required_columns(self) -> List[str]:
        """Columns that must exist in the header row for this mapping to be usable."""
        if self.amount_type == AmountType.SPLIT:
            return [self.date, self.description, self.debit or "", self.credit or ""]
        return [self.date, self.description, self.amount or ""]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase names used by mapping UIs."""
        return self.model_dump(mode='json', by_alias=True)


@dataclass(frozen=True)
class ResolvedColumns:
    """
    A ColumnMapping resolved against one header row into column indices.

    Rows are read by integer index from here on, so a mapping that names an
    unknown column fails once, at resolution time.
    """
    amount_type: AmountType
    date: int
    description: int
    amount: Optional[int] = None
    debit: Optional[int] = None
    credit: Optional[int] = None
    category: Optional[int] = None
    balance: Optional[int] = None

    @classmethod
    def resolve(cls, mapping: ColumnMapping, headers: List[str]) -> "ResolvedColumns":
        """
        Resolve mapping column names to indices in ``headers``.

        Args:
            mapping: Validated column mapping
            headers: Quote-stripped header names in column order

        Returns:
            ResolvedColumns with one index per bound field

        Raises:
            ColumnResolutionError: If a required column is not in the header row
        """
        index_by_name: Dict[str, int] = {}
        for i, header in enumerate(headers):
            # First occurrence wins for duplicate header names
            index_by_name.setdefault(header, i)

        missing = [name for name in mapping.required_columns() if name not in index_by_name]
        if missing:
            raise ColumnResolutionError(missing, headers)

        # Optional columns that are absent are left unbound
        indices: Dict[str, Optional[int]] = {
            canonical.value: index_by_name.get(column)
            for canonical, column in mapping.bound_columns()
        }

        return cls(
            amount_type=mapping.amount_type,
            date=index_by_name[mapping.date],
            description=index_by_name[mapping.description],
            amount=indices.get(CanonicalField.AMOUNT.value),
            debit=indices.get(CanonicalField.DEBIT.value),
            credit=indices.get(CanonicalField.CREDIT.value),
            category=indices.get(CanonicalField.CATEGORY.value),
            balance=indices.get(CanonicalField.BALANCE.value),
        )

    @staticmethod
    def cell(values: List[str], index: Optional[int]) -> str:
        """Value at ``index``, or an empty string for short rows and unbound fields."""
        if index is None or index >= len(values):
            return ""
        return values[index]
