"""
Statement-level entry point: decode raw bytes, sniff the format, dispatch.
"""
import logging
from typing import Dict, Optional, Union

from models.statement_format import StatementFormat
from models.transaction import ParseOutcome
from services.csv_import_service import MappingInput, parse_csv_content, parse_csv_with_mapping
from services.ofx_import_service import parse_ofx_content
from utils.dialect import COMMA, SEMICOLON, TAB, split_lines, strip_bom
from utils.import_config import ImportConfig
from utils.logging_config import configure_logging
from utils.ofx_scanner import parse_ofx_headers

configure_logging()
logger = logging.getLogger(__name__)

UTF8_BOM = b'\xef\xbb\xbf'

# Map common OFX charset values to Python encodings
CHARSET_MAP: Dict[str, str] = {
    '1252': 'cp1252',        # Windows-1252
    'WINDOWS-1252': 'cp1252',
    'CP1252': 'cp1252',
    'ISO-8859-1': 'latin-1',
    'UTF-8': 'utf-8',
    'ASCII': 'ascii',
    'USASCII': 'ascii',
}

OFX_MARKERS = ('OFXHEADER:', '<?OFX', '<OFX>')


def get_ofx_encoding(headers: Dict[str, str]) -> Optional[str]:
    """
    Determine the codec named by OFX ``CHARSET`` or ``ENCODING`` headers.

    Returns:
        Python codec name, or None when neither header names a known charset
    """
    charset = headers.get('CHARSET', '').upper()
    encoding_header = headers.get('ENCODING', '').upper()

    if charset in CHARSET_MAP:
        logger.debug(f"Using encoding '{CHARSET_MAP[charset]}' from CHARSET header: {charset}")
        return CHARSET_MAP[charset]
    if encoding_header in CHARSET_MAP:
        logger.debug(f"Using encoding '{CHARSET_MAP[encoding_header]}' from ENCODING header: {encoding_header}")
        return CHARSET_MAP[encoding_header]
    return None


def decode_statement(content: bytes) -> str:
    """
    Decode raw statement bytes to text.

    OFX 1.x files declare their charset in the header block; everything else is
    read as UTF-8 with any byte order mark removed. Undecodable bytes are
    replaced rather than rejected.
    """
    if content.startswith(UTF8_BOM):
        content = content[len(UTF8_BOM):]

    encoding = None
    if b'OFXHEADER:' in content[:1024]:
        # Header lines are ASCII, so latin-1 reads them without failing
        encoding = get_ofx_encoding(parse_ofx_headers(content.decode('latin-1')))

    if encoding:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError as e:
            logger.warning(f"Failed to decode with {encoding}, falling back to utf-8: {str(e)}")

    try:
        return content.decode('utf-8')
    except UnicodeDecodeError as e:
        logger.warning(f"Content is not valid utf-8, replacing undecodable bytes: {str(e)}")
        return content.decode('utf-8', errors='replace')


def detect_statement_format(text: str) -> StatementFormat:
    """
    Sniff the statement format from decoded text.

    Returns:
        StatementFormat.OFX for OFX 1.x/2.x content, CSV when the first
        non-empty line is delimited, OTHER otherwise
    """
    stripped = strip_bom(text).strip() if text else ''
    if not stripped:
        return StatementFormat.OTHER

    head = stripped[:4096].upper()
    if any(marker in head for marker in OFX_MARKERS):
        return StatementFormat.OFX
    if stripped.startswith('<?xml') and '<OFX' in head:
        return StatementFormat.OFX

    lines = split_lines(stripped)
    if lines and any(delimiter in lines[0] for delimiter in (TAB, SEMICOLON, COMMA)):
        return StatementFormat.CSV
    return StatementFormat.OTHER


def parse_statement(
    content: Union[str, bytes],
    mapping: Optional[MappingInput] = None,
    config: Optional[ImportConfig] = None,
) -> ParseOutcome:
    """
    Parse a statement file of any supported format.

    Args:
        content: Raw bytes or already decoded text
        mapping: Explicit column mapping for CSV content; ignored for OFX
        config: Optional configuration overriding the environment defaults

    Returns:
        ParseOutcome from the CSV or OFX pipeline
    """
    text = decode_statement(content) if isinstance(content, bytes) else strip_bom(content or '')

    statement_format = detect_statement_format(text)
    logger.info(f"Detected statement format: {statement_format.value}")

    if statement_format == StatementFormat.OFX:
        return parse_ofx_content(text, config)
    if statement_format == StatementFormat.CSV:
        if mapping is not None:
            return parse_csv_with_mapping(text, mapping, config=config)
        return parse_csv_content(text, config)
    return ParseOutcome.failed("Unsupported statement format")
