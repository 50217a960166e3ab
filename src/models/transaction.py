"""
Normalized transaction and parse outcome models.

Every import path (bank format, fuzzy mapping, explicit mapping, OFX) ends up
producing the same NormalizedTransaction records wrapped in a ParseOutcome.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from typing_extensions import Self
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class NormalizedTransaction(BaseModel):
    """
    A single statement line in canonical form.

    Amounts are signed: negative values are outflows, positive values inflows.
    """
    date: date
    description: str = Field(min_length=1)
    amount: Decimal
    category: Optional[str] = None
    balance: Optional[Decimal] = None

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
    )

    @field_validator('description', mode='before')
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('amount', 'balance', mode='before')
    @classmethod
    def ensure_decimal(cls, v: Any) -> Any:
        if v is None or isinstance(v, Decimal):
            return v
        try:
            return Decimal(str(v))
        except Exception as e:
            raise ValueError(f"Invalid amount value: {v}. Could not convert to Decimal.") from e

    @field_validator('category', mode='before')
    @classmethod
    def blank_category_is_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class ParseOutcome(BaseModel):
    """
    Result of parsing one statement file.

    A failed outcome never carries transactions; a successful one never carries
    an error. Rows that could not be parsed only show up in ``skipped``.
    """
    success: bool
    transactions: List[NormalizedTransaction] = Field(default_factory=list)
    skipped: int = Field(default=0, ge=0)
    error: Optional[str] = None
    detected_format: Optional[str] = Field(default=None, alias="detectedFormat")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def check_success_consistency(self) -> Self:
        if self.success:
            if self.error is not None:
                raise ValueError("A successful outcome cannot carry an error")
        else:
            if self.transactions:
                raise ValueError("A failed outcome cannot carry transactions")
            if not self.error:
                raise ValueError("A failed outcome must carry an error message")
        return self

    @classmethod
    def failed(cls, error: str, detected_format: Optional[str] = None) -> "ParseOutcome":
        """Build a whole-file failure."""
        return cls(success=False, transactions=[], skipped=0, error=error, detected_format=detected_format)

    @classmethod
    def succeeded(
        cls,
        transactions: List[NormalizedTransaction],
        skipped: int = 0,
        detected_format: Optional[str] = None,
    ) -> "ParseOutcome":
        """Build a successful outcome."""
        return cls(success=True, transactions=transactions, skipped=skipped, detected_format=detected_format)

    @property
    def total_rows(self) -> int:
        """Rows considered: emitted plus skipped."""
        return len(self.transactions) + self.skipped
