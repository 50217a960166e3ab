"""
Fuzzy mapping of arbitrary header text onto canonical transaction fields.

Synonym tables are data, not code: ColumnSynonyms can be extended per call or
loaded from a JSON file so new institutions only need new entries.
"""
import json
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from models.column_mapping import AmountType, CanonicalField, ColumnMapping

logger = logging.getLogger(__name__)

DEFAULT_SYNONYMS: Dict[CanonicalField, Tuple[str, ...]] = {
    CanonicalField.DATE: (
        'date',
        'transaction date',
        'trans date',
        'trans. date',
        'posting date',
        'post date',
        'posted date',
        'effective date',
        'value date',
    ),
    CanonicalField.DESCRIPTION: (
        'description',
        'memo',
        'narrative',
        'payee',
        'merchant',
        'transaction description',
        'details',
        'name',
        'merchant name',
    ),
    CanonicalField.AMOUNT: (
        'amount',
        'transaction amount',
        'amt',
        'value',
        'sum',
    ),
    CanonicalField.DEBIT: (
        'debit',
        'debit amount',
        'withdrawal',
        'money out',
        'withdrawals',
        'debits',
    ),
    CanonicalField.CREDIT: (
        'credit',
        'credit amount',
        'deposit',
        'money in',
        'deposits',
        'credits',
    ),
    CanonicalField.CATEGORY: (
        'category',
        'type',
        'transaction type',
        'merchant category',
    ),
    CanonicalField.BALANCE: (
        'balance',
        'running balance',
        'available balance',
        'ledger balance',
    ),
}


def normalize_header(header: str) -> str:
    """Lowercase, trim, and turn underscores and hyphens into spaces."""
    return header.strip().lower().replace('_', ' ').replace('-', ' ')


class ColumnSynonyms:
    """Immutable synonym tables, one per canonical field."""

    def __init__(self, tables: Optional[Mapping[CanonicalField, Iterable[str]]] = None):
        source = DEFAULT_SYNONYMS if tables is None else tables
        self._tables: Dict[CanonicalField, Tuple[str, ...]] = {
            canonical: tuple(normalize_header(name) for name in source.get(canonical, ()))
            for canonical in CanonicalField
        }

    def __getitem__(self, canonical: CanonicalField) -> Tuple[str, ...]:
        return self._tables[canonical]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnSynonyms):
            return NotImplemented
        return self._tables == other._tables

    def as_dict(self) -> Dict[str, List[str]]:
        return {canonical.value: list(names) for canonical, names in self._tables.items()}

    def with_extra(self, canonical: Union[CanonicalField, str], names: Iterable[str]) -> "ColumnSynonyms":
        """Return a copy with ``names`` appended to one field's synonyms."""
        return self.merged({canonical: names})

    def merged(self, extra: Mapping[Union[CanonicalField, str], Iterable[str]]) -> "ColumnSynonyms":
        """
        Return a copy with extra synonyms appended after the existing ones.

        Raises:
            ValueError: If a key is not a canonical field name
        """
        tables: Dict[CanonicalField, List[str]] = {c: list(n) for c, n in self._tables.items()}
        for key, names in extra.items():
            canonical = CanonicalField(key)
            for name in names:
                normalized = normalize_header(name)
                if normalized and normalized not in tables[canonical]:
                    tables[canonical].append(normalized)
        return ColumnSynonyms(tables)

    @classmethod
    def from_json_file(cls, path: str, base: Optional["ColumnSynonyms"] = None) -> "ColumnSynonyms":
        """
        Load extra synonyms from a JSON object of ``{"field": ["synonym", ...]}``.

        The loaded entries extend ``base`` (the defaults when omitted).
        """
        with open(path, encoding='utf-8') as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Synonyms file {path} must contain a JSON object")
        logger.info(f"Loaded extra column synonyms for {sorted(data.keys())} from {path}")
        return (base or cls()).merged(data)


def matches_synonym(header: str, synonyms: Sequence[str]) -> bool:
    """
    Return True if the header equals, contains, or is contained by any synonym.

    Blank headers never match.
    """
    normalized = normalize_header(header)
    if not normalized:
        return False
    return any(normalized == name or name in normalized or normalized in name for name in synonyms)


def find_matching_column(headers: Sequence[str], synonyms: Sequence[str]) -> Optional[str]:
    """First header, in column order, that matches any synonym."""
    for header in headers:
        if matches_synonym(header, synonyms):
            return header
    return None


def suggest_mapping(headers: Sequence[str], synonyms: Optional[ColumnSynonyms] = None) -> Optional[ColumnMapping]:
    """
    Suggest a column mapping from header names.

    A suggestion needs date and description, plus either an amount column or
    both debit and credit columns. When an amount column is found it wins and
    the mapping is single-amount; otherwise it is split.

    Args:
        headers: Quote-stripped header names in column order
        synonyms: Synonym tables; the defaults when omitted

    Returns:
        The suggested ColumnMapping, or None when the headers are not usable
    """
    synonyms = synonyms or ColumnSynonyms()
    found = {canonical: find_matching_column(headers, synonyms[canonical]) for canonical in CanonicalField}

    date_col = found[CanonicalField.DATE]
    description_col = found[CanonicalField.DESCRIPTION]
    if not date_col or not description_col:
        logger.debug(f"No date/description column among headers {list(headers)}")
        return None

    amount_col = found[CanonicalField.AMOUNT]
    debit_col = found[CanonicalField.DEBIT]
    credit_col = found[CanonicalField.CREDIT]
    has_split = debit_col is not None and credit_col is not None

    if amount_col is None and not has_split:
        logger.debug(f"No amount or debit/credit columns among headers {list(headers)}")
        return None

    if amount_col is not None:
        return ColumnMapping(
            date=date_col,
            description=description_col,
            amount=amount_col,
            category=found[CanonicalField.CATEGORY],
            balance=found[CanonicalField.BALANCE],
            amount_type=AmountType.SINGLE,
        )
    return ColumnMapping(
        date=date_col,
        description=description_col,
        debit=debit_col,
        credit=credit_col,
        category=found[CanonicalField.CATEGORY],
        balance=found[CanonicalField.BALANCE],
        amount_type=AmountType.SPLIT,
    )
