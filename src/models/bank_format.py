"""
Bank format models.

A BankFormatSpec recognizes one institution's fixed CSV layout from the
tokenized first line and projects each data row onto canonical fields.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from models.column_mapping import AmountType


@dataclass(frozen=True)
class CanonicalRow:
    """Raw text for each canonical field, before value normalization."""
    date: str
    description: str
    amount: str
    category: Optional[str] = None
    balance: Optional[str] = None


@dataclass(frozen=True)
class BankFormatSpec:
    """
    Fixed-shape statement layout of a single institution.

    ``detect`` receives the tokenized first line of the file. ``project``
    receives every tokenized data row and returns its canonical fields.
    ``sample`` is a representative first line; registries use it to prove that
    no earlier format claims this one's files.
    """
    name: str
    has_header: bool
    detect: Callable[[List[str]], bool]
    project: Callable[[List[str]], CanonicalRow]
    sample: str
    amount_type: AmountType = AmountType.SINGLE
    header_signature: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def slug(self) -> str:
        """Lowercase identifier, e.g. ``bank_of_america``."""
        return re.sub(r'\s+', '_', self.name.strip().lower())

    def to_info(self) -> "BankFormatInfo":
        return BankFormatInfo(name=self.slug, display_name=self.name)


class BankFormatInfo(BaseModel):
    """Registry listing entry for diagnostics and UI display."""
    name: str
    display_name: str = Field(alias="displayName")

    model_config = ConfigDict(populate_by_name=True, frozen=True)
