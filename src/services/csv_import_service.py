"""
CSV statement import pipeline.

Turns delimited bank and brokerage exports into NormalizedTransaction lists.
Detection runs in a fixed order, falling through to the next strategy when
one does not apply:

1. bank-format registry on the first line (headered and headerless layouts),
2. fuzzy header mapping on the located header row,
3. exact ``date``/``description``/``amount`` header names.

A caller-supplied ColumnMapping skips detection entirely. Rows that cannot be
normalized are counted as skipped; only structural problems fail the parse.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from models.bank_format import BankFormatInfo, BankFormatSpec, CanonicalRow
from models.column_mapping import AmountType, ColumnMapping, ResolvedColumns
from models.preview import ColumnInfo, RawPreview
from models.transaction import NormalizedTransaction, ParseOutcome
from utils.column_mapper import suggest_mapping
from utils.csv_tokenizer import split_header, split_line, strip_quotes
from utils.dialect import detect_delimiter, find_header_row, split_lines
from utils.errors import ColumnResolutionError, RowParseError, StructuralParseError
from utils.import_config import ImportConfig, resolve_config
from utils.logging_config import configure_logging
from utils.value_normalizers import format_amount, normalize_row, parse_amount, resolve_split_amount

configure_logging()
logger = logging.getLogger(__name__)

GENERIC_CSV_FORMAT = 'Generic CSV'
MANUAL_MAPPING_FORMAT = 'Manual Mapping'

EXACT_REQUIRED_COLUMNS = ('date', 'description', 'amount')
EXACT_OPTIONAL_COLUMNS = ('category', 'balance')

MappingInput = Union[ColumnMapping, Dict[str, Any]]

__all__ = [
    'GENERIC_CSV_FORMAT',
    'MANUAL_MAPPING_FORMAT',
    'parse_csv_content',
    'parse_csv_with_mapping',
    'get_raw_preview',
    'get_column_info',
    'suggest_column_mapping',
    'list_bank_formats',
    'get_format_display_name',
]


# =============================================================================
# ROW PARSING
# =============================================================================

def _canonical_row_from_columns(values: List[str], columns: ResolvedColumns) -> CanonicalRow:
    """Read one tokenized row through resolved column indices."""
    if columns.amount_type == AmountType.SPLIT:
        debit_str = columns.cell(values, columns.debit)
        credit_str = columns.cell(values, columns.credit)
        if parse_amount(debit_str) is None and parse_amount(credit_str) is None:
            raise RowParseError(f"Unparseable debit {debit_str!r} and credit {credit_str!r}")
        amount_str = format_amount(resolve_split_amount(debit_str, credit_str))
    else:
        amount_str = columns.cell(values, columns.amount)

    return CanonicalRow(
        date=columns.cell(values, columns.date),
        description=columns.cell(values, columns.description),
        amount=amount_str,
        category=columns.cell(values, columns.category) or None,
        balance=columns.cell(values, columns.balance) or None,
    )


def _parse_rows(
    lines: List[str],
    start: int,
    delimiter: str,
    columns: ResolvedColumns,
) -> Tuple[List[NormalizedTransaction], int]:
    """Parse every line from ``start`` on; returns (transactions, skipped)."""
    transactions: List[NormalizedTransaction] = []
    skipped = 0
    for index in range(start, len(lines)):
        values = split_line(lines[index], delimiter)
        try:
            row = _canonical_row_from_columns(values, columns)
            transactions.append(normalize_row(row, line_number=index + 1))
        except RowParseError as e:
            logger.debug(f"Skipping line {index + 1}: {e.reason}")
            skipped += 1
    return transactions, skipped


def _parse_bank_format(lines: List[str], delimiter: str, spec: BankFormatSpec) -> ParseOutcome:
    """Project every data line through a matched bank format."""
    transactions: List[NormalizedTransaction] = []
    skipped = 0
    start = 1 if spec.has_header else 0

    for index in range(start, len(lines)):
        values = split_line(lines[index], delimiter)
        try:
            transactions.append(normalize_row(spec.project(values), line_number=index + 1))
        except RowParseError as e:
            logger.debug(f"Skipping {spec.name} line {index + 1}: {e.reason}")
            skipped += 1

    logger.info(f"Parsed {len(transactions)} transactions as {spec.name} ({skipped} skipped)")
    return ParseOutcome.succeeded(transactions, skipped, detected_format=spec.name)


def _parse_with_mapping(
    lines: List[str],
    delimiter: str,
    header_index: int,
    mapping: ColumnMapping,
    detected_format: str,
) -> ParseOutcome:
    """Resolve ``mapping`` against the header row and parse the rows after it."""
    headers = split_header(lines[header_index], delimiter)
    columns = ResolvedColumns.resolve(mapping, headers)
    transactions, skipped = _parse_rows(lines, header_index + 1, delimiter, columns)
    logger.info(f"Parsed {len(transactions)} transactions as {detected_format} "
                f"(header row {header_index}, {skipped} skipped)")
    return ParseOutcome.succeeded(transactions, skipped, detected_format=detected_format)


def _exact_column_mapping(headers: List[str]) -> ColumnMapping:
    """
    Mapping from the exact lowercase names date, description and amount.

    Raises:
        ColumnResolutionError: If any of the three names is missing
    """
    by_lower: Dict[str, str] = {}
    for header in headers:
        by_lower.setdefault(header.lower(), header)

    missing = [name for name in EXACT_REQUIRED_COLUMNS if name not in by_lower]
    if missing:
        raise ColumnResolutionError(missing, headers)

    return ColumnMapping(
        date=by_lower['date'],
        description=by_lower['description'],
        amount=by_lower['amount'],
        category=by_lower.get('category'),
        balance=by_lower.get('balance'),
    )


def _prepare_lines(content: Optional[str]) -> Tuple[str, List[str]]:
    """
    Normalize line endings and split content into non-empty lines.

    Raises:
        StructuralParseError: If the content is empty
    """
    if not content or not content.strip():
        raise StructuralParseError("Content is empty")
    delimiter = detect_delimiter(content)
    lines = split_lines(content)
    return delimiter, lines


def _coerce_mapping(mapping: MappingInput) -> ColumnMapping:
    """
    Accept a ColumnMapping or its dict form (camelCase or snake_case keys).

    Raises:
        StructuralParseError: If the dict does not describe a valid mapping
    """
    if isinstance(mapping, ColumnMapping):
        return mapping
    try:
        return ColumnMapping.model_validate(mapping)
    except ValidationError as e:
        reasons = '; '.join(error['msg'] for error in e.errors())
        raise StructuralParseError(f"Invalid column mapping: {reasons}") from e


# =============================================================================
# MAIN API
# =============================================================================

def parse_csv_content(content: str, config: Optional[ImportConfig] = None) -> ParseOutcome:
    """
    Parse CSV statement content, detecting its layout.

    Args:
        content: Decoded file content; delimiter and line endings are detected
        config: Optional configuration overriding the environment defaults

    Returns:
        ParseOutcome with the transactions, or an error for unusable content
    """
    try:
        config = resolve_config(config)
        delimiter, lines = _prepare_lines(content)

        bank_format = config.bank_formats.detect(split_line(lines[0], delimiter))
        if bank_format is not None:
            logger.info(f"Detected bank format: {bank_format.name}")
            return _parse_bank_format(lines, delimiter, bank_format)

        header_index = find_header_row(lines, delimiter)
        if header_index >= len(lines) - 1:
            raise StructuralParseError("Content is empty or has no data rows")

        headers = split_header(lines[header_index], delimiter)
        mapping = suggest_mapping(headers, config.synonyms)
        if mapping is None:
            logger.info(f"Fuzzy column mapping failed for headers {headers}; trying exact column names")
            mapping = _exact_column_mapping(headers)
        return _parse_with_mapping(lines, delimiter, header_index, mapping, GENERIC_CSV_FORMAT)

    except StructuralParseError as e:
        logger.warning(f"Could not parse CSV content: {str(e)}")
        return ParseOutcome.failed(str(e))
    except Exception as e:
        logger.error(f"Error parsing CSV content: {str(e)}")
        return ParseOutcome.failed(str(e) or 'Unknown error')


def parse_csv_with_mapping(
    content: str,
    mapping: MappingInput,
    header_row_override: Optional[int] = None,
    config: Optional[ImportConfig] = None,
) -> ParseOutcome:
    """
    Parse CSV content with an explicit, user-confirmed column mapping.

    Bank-format and fuzzy detection are bypassed. The header row is the
    override if given, else ``mapping.header_row``, else the detected one.

    Args:
        content: Decoded file content
        mapping: ColumnMapping or its dict form
        header_row_override: 0-based header row index among non-empty lines
        config: Optional configuration; explicit mappings use no detection settings

    Returns:
        ParseOutcome labelled "Manual Mapping"
    """
    try:
        if not content or not content.strip():
            raise StructuralParseError("Content is empty")
        column_mapping = _coerce_mapping(mapping)

        delimiter = detect_delimiter(content)
        lines = split_lines(content)
        if len(lines) < 2:
            raise StructuralParseError("No data rows found")

        if header_row_override is not None:
            header_index = header_row_override
        elif column_mapping.header_row is not None:
            header_index = column_mapping.header_row
        else:
            header_index = find_header_row(lines, delimiter)

        if header_index < 0 or header_index >= len(lines) - 1:
            raise StructuralParseError("No data rows found after header")

        return _parse_with_mapping(lines, delimiter, header_index, column_mapping, MANUAL_MAPPING_FORMAT)

    except StructuralParseError as e:
        logger.warning(f"Could not parse CSV content with mapping: {str(e)}")
        return ParseOutcome.failed(str(e))
    except Exception as e:
        logger.error(f"Error parsing CSV content with mapping: {str(e)}")
        return ParseOutcome.failed(str(e) or 'Unknown error')


# =============================================================================
# INTERACTIVE MAPPING SUPPORT
# =============================================================================

def suggest_column_mapping(headers: List[str], config: Optional[ImportConfig] = None) -> Optional[ColumnMapping]:
    """Suggest a mapping for header names using the configured synonym tables."""
    return suggest_mapping([strip_quotes(h) for h in headers], resolve_config(config).synonyms)


def get_raw_preview(
    content: str,
    max_rows: Optional[int] = None,
    config: Optional[ImportConfig] = None,
) -> Optional[RawPreview]:
    """
    Tokenized leading rows with detected delimiter, header row and mapping.

    Args:
        content: Decoded file content
        max_rows: Cap on returned rows (configured default when omitted)
        config: Optional configuration

    Returns:
        RawPreview, or None for empty content or fewer than two lines
    """
    try:
        config = resolve_config(config)
        if not content or not content.strip():
            return None
        delimiter = detect_delimiter(content)
        lines = split_lines(content)
        if len(lines) < 2:
            return None

        limit = max_rows if max_rows is not None else config.preview_max_rows
        raw_rows = [split_line(line, delimiter) for line in lines[:max(limit, 0)]]
        header_index = find_header_row(lines, delimiter)

        suggested: Optional[ColumnMapping] = None
        if header_index < len(raw_rows):
            headers = [strip_quotes(h) for h in raw_rows[header_index]]
            suggested = suggest_mapping(headers, config.synonyms)

        return RawPreview(
            raw_rows=raw_rows,
            total_rows=len(lines),
            detected_header_row=header_index,
            detected_delimiter=delimiter,
            suggested_mapping=suggested,
        )
    except Exception as e:
        logger.error(f"Error building raw CSV preview: {str(e)}")
        return None


def get_column_info(content: str, config: Optional[ImportConfig] = None) -> Optional[ColumnInfo]:
    """
    Header names, a few sample rows keyed by header, and a suggested mapping.

    Returns:
        ColumnInfo, or None for empty content or fewer than two lines
    """
    try:
        config = resolve_config(config)
        if not content or not content.strip():
            return None
        delimiter = detect_delimiter(content)
        lines = split_lines(content)
        if len(lines) < 2:
            return None

        header_index = find_header_row(lines, delimiter)
        headers = split_header(lines[header_index], delimiter)

        sample_data: List[Dict[str, str]] = []
        sample_end = min(header_index + 1 + config.column_info_sample_rows, len(lines))
        for line in lines[header_index + 1:sample_end]:
            values = split_line(line, delimiter)
            sample_data.append({
                header: strip_quotes(values[i]) if i < len(values) else ''
                for i, header in enumerate(headers)
            })

        return ColumnInfo(
            columns=headers,
            sample_data=sample_data,
            suggested_mapping=suggest_mapping(headers, config.synonyms),
        )
    except Exception as e:
        logger.error(f"Error reading CSV column info: {str(e)}")
        return None


def list_bank_formats(config: Optional[ImportConfig] = None) -> List[BankFormatInfo]:
    """Registered bank formats in precedence order."""
    return resolve_config(config).bank_formats.list_formats()


def get_format_display_name(format_name: Optional[str], config: Optional[ImportConfig] = None) -> str:
    """Display name for a detected-format label."""
    return resolve_config(config).bank_formats.display_name(format_name)
