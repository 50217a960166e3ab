"""
OFX/QFX statement import pipeline.

Handles OFX 1.x SGML and OFX 2.x XML. Both dialects are scanned into
OfxTransactionRecord values which are then normalized like any CSV row.
"""
import logging
from typing import List, Optional

from models.transaction import NormalizedTransaction, ParseOutcome
from utils.errors import RowParseError, StructuralParseError
from utils.import_config import ImportConfig
from utils.logging_config import configure_logging
from utils.ofx_scanner import OfxTransactionRecord, detect_ofx_dialect, scan_blocks
from utils.value_normalizers import parse_amount, parse_ofx_date

configure_logging()
logger = logging.getLogger(__name__)

OFX_FORMAT = 'OFX'


def normalize_ofx_record(record: OfxTransactionRecord) -> NormalizedTransaction:
    """
    Convert one scanned STMTTRN block to a NormalizedTransaction.

    The description is the payee name, with the memo appended when it adds
    something (``"name - memo"``).

    Raises:
        RowParseError: If the posted date, amount or name is missing or unparseable
    """
    if not record.posted or not record.amount or not record.name:
        raise RowParseError(f"Transaction {record.fit_id or '<no FITID>'} is missing DTPOSTED, TRNAMT or NAME")

    posted = parse_ofx_date(record.posted)
    if posted is None:
        raise RowParseError(f"Unparseable OFX date: {record.posted!r}")

    amount = parse_amount(record.amount)
    if amount is None:
        raise RowParseError(f"Unparseable OFX amount: {record.amount!r}")

    description = record.name
    if record.memo and record.memo != record.name:
        description = f"{record.name} - {record.memo}"

    return NormalizedTransaction(date=posted, description=description, amount=amount)


def parse_ofx_content(content: str, config: Optional[ImportConfig] = None) -> ParseOutcome:
    """
    Parse OFX content of either dialect.

    Args:
        content: Decoded OFX/QFX text
        config: Optional configuration; OFX parsing has no tunable settings

    Returns:
        ParseOutcome labelled "OFX"
    """
    try:
        if not content or not content.strip():
            raise StructuralParseError("Content is empty")

        dialect = detect_ofx_dialect(content)
        records = scan_blocks(content, dialect)
        logger.info(f"Found {len(records)} transaction blocks in {dialect.value.upper()} OFX content")
        if not records:
            raise StructuralParseError("No transactions found in OFX content")

        transactions: List[NormalizedTransaction] = []
        skipped = 0
        for record in records:
            try:
                transactions.append(normalize_ofx_record(record))
            except RowParseError as e:
                logger.debug(f"Skipping OFX transaction: {e.reason}")
                skipped += 1

        logger.info(f"Parsed {len(transactions)} OFX transactions ({skipped} skipped)")
        return ParseOutcome.succeeded(transactions, skipped, detected_format=OFX_FORMAT)

    except StructuralParseError as e:
        logger.warning(f"Could not parse OFX content: {str(e)}")
        return ParseOutcome.failed(str(e))
    except Exception as e:
        logger.error(f"Error parsing OFX content: {str(e)}")
        return ParseOutcome.failed(str(e) or 'Unknown error')
