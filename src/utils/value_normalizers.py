"""
Date and amount normalization for statement rows.

Parsers here return None for values they cannot interpret; normalize_row turns
that into a RowParseError so the caller can skip the row.
"""
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, getcontext
from typing import Callable, List, Optional

from models.bank_format import CanonicalRow
from models.transaction import NormalizedTransaction
from utils.errors import RowParseError

logger = logging.getLogger(__name__)

# Calendar formats accepted as written, before the positional fallbacks
CALENDAR_DATE_FORMATS = [
    "%Y-%m-%d",             # 2024-01-15
    "%Y-%m-%dT%H:%M:%S",    # 2024-01-15T10:30:00
    "%Y-%m-%dT%H:%M:%S.%f", # 2024-01-15T10:30:00.000
    "%Y-%m-%dT%H:%M:%SZ",   # 2024-01-15T10:30:00Z
    "%Y-%m-%dT%H:%M",       # 2024-01-15T10:30
    "%Y-%m-%d %H:%M:%S",    # 2024-01-15 10:30:00
    "%Y-%m-%d %H:%M",       # 2024-01-15 10:30
    "%Y/%m/%d",             # 2024/01/15
    "%b %d, %Y",            # Jan 15, 2024
    "%B %d, %Y",            # January 15, 2024
    "%d %b %Y",             # 15 Jan 2024
    "%d %B %Y",             # 15 January 2024
]

SLASH_DATE_PATTERN = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')
DASH_MONTH_DATE_PATTERN = re.compile(r'^(\d{1,2})-([a-z]{3})-(\d{4})$', re.IGNORECASE)

MONTH_NAMES = ['jan', 'feb', 'mar', 'apr', 'may', 'jun', 'jul', 'aug', 'sep', 'oct', 'nov', 'dec']

CURRENCY_SYMBOLS_PATTERN = re.compile(r'[$€£¥]')
WHITESPACE_PATTERN = re.compile(r'\s')


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_calendar_date(text: str) -> Optional[date]:
    for fmt in CALENDAR_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _parse_slash_date(text: str) -> Optional[date]:
    """MM/DD/YYYY"""
    match = SLASH_DATE_PATTERN.match(text)
    if not match:
        return None
    month, day, year = match.groups()
    return _safe_date(int(year), int(month), int(day))


def _parse_dash_month_date(text: str) -> Optional[date]:
    """DD-Mon-YYYY, e.g. 15-Jan-2026"""
    match = DASH_MONTH_DATE_PATTERN.match(text)
    if not match:
        return None
    day, month_name, year = match.groups()
    month_name = month_name.lower()
    if month_name not in MONTH_NAMES:
        return None
    return _safe_date(int(year), MONTH_NAMES.index(month_name) + 1, int(day))


DATE_PARSERS: List[Callable[[str], Optional[date]]] = [
    _parse_calendar_date,
    _parse_slash_date,
    _parse_dash_month_date,
]


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse a statement date.

    Calendar formats (ISO with an optional time, YYYY/MM/DD, spelled-out
    month names) are tried first, then MM/DD/YYYY, then DD-Mon-YYYY.

    Returns:
        The calendar date, or None when no format applies or the date does not
        exist (e.g. 02/30/2024)
    """
    if not date_str:
        return None
    trimmed = date_str.strip()
    for parser in DATE_PARSERS:
        parsed = parser(trimmed)
        if parsed is not None:
            return parsed
    return None


def parse_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """
    Parse a currency amount after stripping symbols, thousands separators and whitespace.

    Returns:
        The signed Decimal, or None when the remainder is not a finite number
        within the decimal context exponent range
    """
    if not amount_str:
        return None
    cleaned = CURRENCY_SYMBOLS_PATTERN.sub('', amount_str.strip())
    cleaned = WHITESPACE_PATTERN.sub('', cleaned.replace(',', ''))
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    context = getcontext()
    if not context.Emin <= amount.adjusted() <= context.Emax:
        logger.debug(f"Amount exponent out of range: {amount_str!r}")
        return None
    return amount


def parse_ofx_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse an OFX ``YYYYMMDD[HHMMSS[.XXX][TZ]]`` date positionally.

    Only the first eight characters matter; any non-numeric slice among them
    makes the date unparseable.
    """
    if not date_str:
        return None
    text = date_str.strip()
    year_str, month_str, day_str = text[0:4], text[4:6], text[6:8]
    if not (len(year_str) == 4 and year_str.isdigit() and
            len(month_str) == 2 and month_str.isdigit() and
            len(day_str) == 2 and day_str.isdigit()):
        return None
    return _safe_date(int(year_str), int(month_str), int(day_str))


def format_amount(amount: Decimal) -> str:
    """Render a Decimal as plain text that parse_amount reads back unchanged."""
    return format(amount, 'f')


def resolve_split_amount(debit_str: Optional[str], credit_str: Optional[str]) -> Decimal:
    """
    Combine separate debit and credit columns into one signed amount.

    A non-zero debit becomes an outflow (negative); otherwise a non-zero credit
    becomes an inflow (positive); otherwise the amount is zero.
    """
    debit = parse_amount(debit_str)
    credit = parse_amount(credit_str)
    try:
        if debit is not None and debit != 0:
            return -abs(debit)
        if credit is not None and credit != 0:
            return abs(credit)
    except ArithmeticError as e:
        logger.debug(f"Unusable split amount debit={debit_str!r} credit={credit_str!r}: {str(e)}")
    return Decimal(0)


def normalize_row(row: CanonicalRow, line_number: Optional[int] = None) -> NormalizedTransaction:
    """
    Normalize the raw canonical fields of one row.

    Raises:
        RowParseError: If the date or amount is unparseable or the description is empty
    """
    parsed_date = parse_date(row.date)
    if parsed_date is None:
        raise RowParseError(f"Unparseable date: {row.date!r}", line_number)

    amount = parse_amount(row.amount)
    if amount is None:
        raise RowParseError(f"Unparseable amount: {row.amount!r}", line_number)

    description = (row.description or '').strip()
    if not description:
        raise RowParseError("Empty description", line_number)

    balance = parse_amount(row.balance) if row.balance else None

    return NormalizedTransaction(
        date=parsed_date,
        description=description,
        amount=amount,
        category=row.category or None,
        balance=balance,
    )
