"""
Ordered registry of institution-specific CSV layouts.

Several layouts have overlapping shapes (two seven-column headered exports,
for example), so the registry is an ordered list and the first format whose
detector accepts the first line wins. Registering a format checks that this
order stays unambiguous against every format's sample line.
"""
import logging
import re
from typing import Callable, Iterable, List, Optional, Sequence, Union

from models.bank_format import BankFormatInfo, BankFormatSpec, CanonicalRow
from models.column_mapping import AmountType
from utils.csv_tokenizer import split_line, strip_quotes
from utils.errors import BankFormatConflictError
from utils.value_normalizers import format_amount, resolve_split_amount

logger = logging.getLogger(__name__)

Alternatives = Union[str, Sequence[str]]

SLASH_DATE_PATTERN = re.compile(r'^\d{1,2}/\d{1,2}/\d{4}$')
PLAIN_AMOUNT_PATTERN = re.compile(r'^-?\d+\.?\d*$')


def normalize_values(values: Sequence[str]) -> List[str]:
    """Quote-stripped, lowercased values for header comparison."""
    return [strip_quotes(v).lower() for v in values]


def header_detector(
    required: Iterable[Alternatives],
    min_columns: Optional[int] = None,
    exact_columns: Optional[int] = None,
) -> Callable[[List[str]], bool]:
    """
    Build a detector requiring a set of header names anywhere in the first line.

    Each entry of ``required`` is a header name or a group of alternative
    names, one of which must be present. Extra columns and column order are
    ignored, since institutions add columns over time.
    """
    groups = [
        (group,) if isinstance(group, str) else tuple(group)
        for group in required
    ]

    def detect(values: List[str]) -> bool:
        if exact_columns is not None and len(values) != exact_columns:
            return False
        if min_columns is not None and len(values) < min_columns:
            return False
        present = set(normalize_values(values))
        return all(any(name in present for name in group) for group in groups)

    return detect


def _cell(values: Sequence[str], index: int) -> str:
    if index >= len(values):
        return ''
    return strip_quotes(values[index])


def _optional_cell(values: Sequence[str], index: int) -> Optional[str]:
    return _cell(values, index) or None


def _split_amount(values: Sequence[str], debit_index: int, credit_index: int) -> str:
    return format_amount(resolve_split_amount(_cell(values, debit_index), _cell(values, credit_index)))


# Wells Fargo: "Date","Amount","*","","Description" with no header line

def _detect_wells_fargo(values: List[str]) -> bool:
    if len(values) != 5:
        return False
    cleaned = [strip_quotes(v) for v in values]
    return (
        SLASH_DATE_PATTERN.match(cleaned[0]) is not None
        and PLAIN_AMOUNT_PATTERN.match(cleaned[1]) is not None
        and cleaned[2] == '*'
    )


def _project_wells_fargo(values: List[str]) -> CanonicalRow:
    return CanonicalRow(
        date=_cell(values, 0),
        amount=_cell(values, 1),
        description=_cell(values, 4),
    )


WELLS_FARGO = BankFormatSpec(
    name='Wells Fargo',
    has_header=False,
    detect=_detect_wells_fargo,
    project=_project_wells_fargo,
    sample='"01/05/2024","-45.00","*","","COFFEE SHOP #123"',
)


# Chase: Transaction Date,Post Date,Description,Category,Type,Amount,Memo

CHASE = BankFormatSpec(
    name='Chase',
    has_header=True,
    header_signature=('transaction date', 'post date', 'description', 'category', 'type', 'amount', 'memo'),
    detect=header_detector(['transaction date', 'amount', 'description'], exact_columns=7),
    project=lambda values: CanonicalRow(
        date=_cell(values, 0),
        description=_cell(values, 2),
        category=_optional_cell(values, 3),
        amount=_cell(values, 5),
    ),
    sample='Transaction Date,Post Date,Description,Category,Type,Amount,Memo',
)


# Bank of America: Date,Description,Debit,Credit

BANK_OF_AMERICA = BankFormatSpec(
    name='Bank of America',
    has_header=True,
    header_signature=('date', 'description', 'debit', 'credit'),
    detect=header_detector(['date', 'description', 'debit', 'credit'], min_columns=4),
    project=lambda values: CanonicalRow(
        date=_cell(values, 0),
        description=_cell(values, 1),
        amount=_split_amount(values, 2, 3),
    ),
    sample='"Date","Description","Debit","Credit"',
    amount_type=AmountType.SPLIT,
)


# Capital One: Transaction Date,Posted Date,Card No.,Description,Category,Debit,Credit

CAPITAL_ONE = BankFormatSpec(
    name='Capital One',
    has_header=True,
    header_signature=('transaction date', 'posted date', 'card no.', 'description', 'category', 'debit', 'credit'),
    detect=header_detector(
        ['transaction date', 'description', 'debit', 'credit', ('card no.', 'card no')],
        min_columns=7,
    ),
    project=lambda values: CanonicalRow(
        date=_cell(values, 0),
        description=_cell(values, 3),
        category=_optional_cell(values, 4),
        amount=_split_amount(values, 5, 6),
    ),
    sample='Transaction Date,Posted Date,Card No.,Description,Category,Debit,Credit',
    amount_type=AmountType.SPLIT,
)


# Discover: Trans. Date,Post Date,Description,Amount,Category

DISCOVER = BankFormatSpec(
    name='Discover',
    has_header=True,
    header_signature=('trans. date', 'post date', 'description', 'amount', 'category'),
    detect=header_detector(
        [('trans. date', 'trans date'), 'description', 'amount', 'category'],
        min_columns=5,
    ),
    project=lambda values: CanonicalRow(
        date=_cell(values, 0),
        description=_cell(values, 2),
        amount=_cell(values, 3),
        category=_optional_cell(values, 4),
    ),
    sample='"Trans. Date","Post Date","Description","Amount","Category"',
)


BUILT_IN_FORMATS: List[BankFormatSpec] = [
    WELLS_FARGO,
    CHASE,
    BANK_OF_AMERICA,
    CAPITAL_ONE,
    DISCOVER,
]


def sample_values(spec: BankFormatSpec) -> List[str]:
    """Tokenize a format's sample line (samples are always comma-delimited)."""
    return split_line(spec.sample, ',')


class BankFormatRegistry:
    """Ordered list of bank formats; the first matching format wins."""

    def __init__(self, formats: Optional[Iterable[BankFormatSpec]] = None):
        self._formats: List[BankFormatSpec] = list(BUILT_IN_FORMATS if formats is None else formats)
        self.check_ordering()

    @property
    def formats(self) -> List[BankFormatSpec]:
        return list(self._formats)

    def __len__(self) -> int:
        return len(self._formats)

    def __iter__(self):
        return iter(list(self._formats))

    def copy(self) -> "BankFormatRegistry":
        return BankFormatRegistry(self._formats)

    def detect(self, values: List[str]) -> Optional[BankFormatSpec]:
        """Return the first format whose detector accepts the tokenized first line."""
        for spec in self._formats:
            if spec.detect(values):
                return spec
        return None

    def check_ordering(self) -> None:
        """
        Verify that every format's sample is claimed by that format and no earlier one.

        Raises:
            BankFormatConflictError: On a self-rejecting sample or an ambiguous order
        """
        names = set()
        for position, spec in enumerate(self._formats):
            if spec.name.lower() in names:
                raise BankFormatConflictError(f"Duplicate bank format name: {spec.name}")
            names.add(spec.name.lower())

            values = sample_values(spec)
            if not spec.detect(values):
                raise BankFormatConflictError(f"Bank format {spec.name} does not detect its own sample line")
            for earlier in self._formats[:position]:
                if earlier.detect(values):
                    raise BankFormatConflictError(
                        f"Bank format {earlier.name} would shadow {spec.name}: "
                        f"it also matches {spec.name}'s sample line"
                    )

    def register(self, spec: BankFormatSpec, index: Optional[int] = None) -> None:
        """
        Add a format at ``index`` (appended when omitted).

        The registry is left unchanged if the new order would be ambiguous.
        """
        candidate = list(self._formats)
        if index is None:
            candidate.append(spec)
        else:
            candidate.insert(index, spec)
        previous = self._formats
        self._formats = candidate
        try:
            self.check_ordering()
        except BankFormatConflictError:
            self._formats = previous
            raise
        logger.info(f"Registered bank format {spec.name} at position {candidate.index(spec)}")

    def find(self, name: Optional[str]) -> Optional[BankFormatSpec]:
        """Look a format up by display name or slug, case-insensitively."""
        if not name:
            return None
        wanted = name.strip().lower()
        for spec in self._formats:
            if spec.name.lower() == wanted or spec.slug == wanted:
                return spec
        return None

    def list_formats(self) -> List[BankFormatInfo]:
        """Registered formats in precedence order."""
        return [spec.to_info() for spec in self._formats]

    def display_name(self, name: Optional[str]) -> str:
        """Display name for a detected-format label; unknown labels pass through."""
        if not name:
            return 'Unknown Format'
        spec = self.find(name)
        return spec.name if spec else name
