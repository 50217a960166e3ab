"""
Delimiter sniffing and header-row localization for delimited statements.
"""
import logging
from collections import Counter
from typing import List

from utils.csv_tokenizer import split_line

logger = logging.getLogger(__name__)

TAB = '\t'
SEMICOLON = ';'
COMMA = ','

BYTE_ORDER_MARK = '\ufeff'

# Comma is checked last: it is the most common false positive inside descriptions
DELIMITER_PRIORITY = (TAB, SEMICOLON)

# Lines with this many fields or fewer are metadata, not tabular data
METADATA_MAX_FIELDS = 2


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace('\r\n', '\n').replace('\r', '\n')


def strip_bom(text: str) -> str:
    """Remove a leading byte order mark left by text decoded as plain utf-8."""
    return text[1:] if text.startswith(BYTE_ORDER_MARK) else text


def split_lines(text: str) -> List[str]:
    """Split text into lines, dropping blank ones."""
    return [line for line in normalize_line_endings(strip_bom(text)).split('\n') if line.strip()]


def detect_delimiter(text: str) -> str:
    """
    Pick the delimiter from the first non-empty line only.

    Tab wins over semicolon, which wins over comma. Later lines are never
    consulted.
    """
    first_line = next(iter(split_lines(text)), '')
    for candidate in DELIMITER_PRIORITY:
        if candidate in first_line:
            return candidate
    return COMMA


def find_header_row(lines: List[str], delimiter: str) -> int:
    """
    Find the index of the header row among possibly noisy leading lines.

    Brokerage exports often start with metadata such as ``For Account:,#####``
    whose field count differs from the table. The header is the first line
    whose field count equals the most frequent count among lines with more
    than two fields.

    Args:
        lines: Non-empty lines of the file
        delimiter: Detected delimiter

    Returns:
        0-based index of the header row (0 when no tabular shape is found)
    """
    if len(lines) < 2:
        return 0

    field_counts = [len(split_line(line, delimiter)) for line in lines]
    frequency = Counter(count for count in field_counts if count > METADATA_MAX_FIELDS)
    if not frequency:
        return 0

    # most_common keeps first-seen order among equal frequencies
    mode_count, _ = frequency.most_common(1)[0]
    header_index = field_counts.index(mode_count)
    if header_index > 0:
        logger.debug(f"Skipping {header_index} metadata line(s) before header (mode field count {mode_count})")
    return header_index
