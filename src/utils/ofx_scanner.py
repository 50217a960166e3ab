"""
Transaction block extraction for OFX statements.

Two syntaxes exist in the wild:
- OFX 1.x SGML: a colon-separated header block, then tags where leaf elements
  have no closing tag (``<TRNAMT>-12.50``), one field per line.
- OFX 2.x XML: a proper XML document with an ``<?xml ...?>`` declaration.

Both are reduced to OfxTransactionRecord values holding the raw field text of
every STMTTRN block inside a BANKTRANLIST or CCTRANLIST.
"""
import enum
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Dict, List, Optional
from xml.sax.saxutils import unescape

logger = logging.getLogger(__name__)

TRANSACTION_LIST_TAGS = frozenset({'BANKTRANLIST', 'CCTRANLIST'})
TRANSACTION_TAG = 'STMTTRN'

# OFX tag name -> OfxTransactionRecord attribute
TRANSACTION_FIELDS: Dict[str, str] = {
    'TRNTYPE': 'trn_type',
    'DTPOSTED': 'posted',
    'TRNAMT': 'amount',
    'FITID': 'fit_id',
    'NAME': 'name',
    'MEMO': 'memo',
}

TAG_PATTERN = re.compile(r'<(/?)([A-Za-z0-9_.]+)[^<>]*>')
OFX_START_PATTERN = re.compile(r'<OFX>', re.IGNORECASE)


class OfxDialect(str, enum.Enum):
    """Enum for OFX syntaxes"""
    SGML = "sgml"
    XML = "xml"


@dataclass
class OfxTransactionRecord:
    """Raw field text of one STMTTRN block; any field may be missing."""
    trn_type: Optional[str] = None
    posted: Optional[str] = None
    amount: Optional[str] = None
    fit_id: Optional[str] = None
    name: Optional[str] = None
    memo: Optional[str] = None

    def set_field(self, tag: str, value: str) -> None:
        attribute = TRANSACTION_FIELDS.get(tag)
        # First occurrence wins, so nested aggregates cannot overwrite a field
        if attribute and getattr(self, attribute) is None and value:
            setattr(self, attribute, value)


def detect_ofx_dialect(content: str) -> OfxDialect:
    """XML when the content opens with an XML declaration, SGML otherwise."""
    if content.lstrip('\ufeff').strip().startswith('<?xml'):
        return OfxDialect.XML
    return OfxDialect.SGML


def parse_ofx_headers(content: str) -> Dict[str, str]:
    """
    Parse the colon-separated OFX 1.x header block.

    Args:
        content: Decoded OFX text

    Returns:
        Dictionary of header key-value pairs (empty for XML documents)
    """
    headers: Dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if line.startswith('<'):
            break  # End of headers
        if ':' in line:
            key, value = line.split(':', 1)
            headers[key.strip().upper()] = value.strip()
    logger.debug(f"Parsed OFX headers: {headers}")
    return headers


def scan_tag_blocks(content: str, lenient: bool = True) -> List[OfxTransactionRecord]:
    """
    Scan forward over tags, tracking whether we are inside a transaction list
    and inside a transaction.

    A field value is the text between its opening tag and the next tag. In
    lenient (SGML) mode an unclosed STMTTRN is closed by the next STMTTRN, the
    end of its list or the end of input; in strict mode only an explicit
    ``</STMTTRN>`` commits a block.
    """
    records: List[OfxTransactionRecord] = []
    in_list = False
    current: Optional[OfxTransactionRecord] = None
    pending_field: Optional[str] = None
    previous_end = 0

    def commit() -> None:
        nonlocal current
        if current is not None:
            records.append(current)
        current = None

    for match in TAG_PATTERN.finditer(content):
        if current is not None and pending_field is not None:
            current.set_field(pending_field, unescape(content[previous_end:match.start()].strip()))
        pending_field = None
        previous_end = match.end()

        closing = match.group(1) == '/'
        tag = match.group(2).upper()

        if tag in TRANSACTION_LIST_TAGS:
            if lenient:
                commit()
            current = None
            in_list = not closing
        elif tag == TRANSACTION_TAG:
            if not in_list:
                continue
            if closing:
                commit()
            else:
                if lenient:
                    commit()
                current = OfxTransactionRecord()
        elif current is not None and not closing:
            pending_field = tag

    if current is not None and pending_field is not None:
        current.set_field(pending_field, unescape(content[previous_end:].strip()))
    if lenient:
        commit()

    return records


def scan_sgml_blocks(content: str) -> List[OfxTransactionRecord]:
    """Extract transaction blocks from OFX 1.x SGML content."""
    start = OFX_START_PATTERN.search(content)
    if start is None:
        logger.warning("No <OFX> element found in SGML content")
        return []
    return scan_tag_blocks(content[start.start():], lenient=True)


def _element_text(element: ET.Element) -> str:
    return (element.text or '').strip()


def scan_xml_blocks(content: str) -> List[OfxTransactionRecord]:
    """
    Extract transaction blocks from OFX 2.x XML content.

    Falls back to a strict tag scan when the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(content.lstrip('\ufeff').strip())
    except ET.ParseError as e:
        logger.info(f"XML parsing failed, scanning OFX tags instead: {str(e)}")
        return scan_tag_blocks(content, lenient=False)

    records: List[OfxTransactionRecord] = []
    for element in root.iter():
        if str(element.tag).upper() not in TRANSACTION_LIST_TAGS:
            continue
        for child in element:
            if str(child.tag).upper() != TRANSACTION_TAG:
                continue
            record = OfxTransactionRecord()
            for node in child.iter():
                if node is not child:
                    record.set_field(str(node.tag).upper(), _element_text(node))
            records.append(record)
    return records


def scan_blocks(content: str, dialect: Optional[OfxDialect] = None) -> List[OfxTransactionRecord]:
    """Extract transaction blocks using the given (or detected) dialect."""
    dialect = dialect or detect_ofx_dialect(content)
    if dialect == OfxDialect.XML:
        return scan_xml_blocks(content)
    return scan_sgml_blocks(content)
