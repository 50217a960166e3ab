"""
Tests for the OFX statement import pipeline.
"""
import unittest
from datetime import date
from decimal import Decimal

from services.ofx_import_service import OFX_FORMAT, normalize_ofx_record, parse_ofx_content
from utils.errors import RowParseError
from utils.ofx_scanner import OfxTransactionRecord


class TestParseOfxContent(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.sgml_content = '''OFXHEADER:100
DATA:OFXSGML
VERSION:102
CHARSET:1252

<OFX>
<BANKMSGSRSV1>
<STMTTRNRS>
<STMTRS>
<BANKTRANLIST>
<DTSTART>20240101
<STMTTRN>
<TRNTYPE>DEBIT
<DTPOSTED>20240115120000[-5:EST]
<TRNAMT>-50.25
<FITID>1001
<NAME>Grocery Store
<MEMO>Weekly groceries
</STMTTRN>
<STMTTRN>
<TRNTYPE>CREDIT
<DTPOSTED>20240120
<TRNAMT>1500.00
<FITID>1002
<NAME>Payroll
<MEMO>Payroll
</STMTTRN>
</BANKTRANLIST>
</STMTRS>
</STMTTRNRS>
</BANKMSGSRSV1>
</OFX>
'''
        self.xml_content = '''<?xml version="1.0" encoding="UTF-8"?>
<?OFX OFXHEADER="200" VERSION="211" SECURITY="NONE"?>
<OFX>
  <BANKMSGSRSV1>
    <STMTTRNRS>
      <STMTRS>
        <BANKTRANLIST>
          <DTSTART>20240101</DTSTART>
          <STMTTRN>
            <TRNTYPE>DEBIT</TRNTYPE>
            <DTPOSTED>20240115120000[-5:EST]</DTPOSTED>
            <TRNAMT>-50.25</TRNAMT>
            <FITID>1001</FITID>
            <NAME>Grocery Store</NAME>
            <MEMO>Weekly groceries</MEMO>
          </STMTTRN>
          <STMTTRN>
            <TRNTYPE>CREDIT</TRNTYPE>
            <DTPOSTED>20240120</DTPOSTED>
            <TRNAMT>1500.00</TRNAMT>
            <FITID>1002</FITID>
            <NAME>Payroll</NAME>
            <MEMO>Payroll</MEMO>
          </STMTTRN>
        </BANKTRANLIST>
      </STMTRS>
    </STMTTRNRS>
  </BANKMSGSRSV1>
</OFX>
'''

    def test_parse_sgml(self):
        """Test parsing an SGML statement end to end."""
        outcome = parse_ofx_content(self.sgml_content)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.detected_format, OFX_FORMAT)
        self.assertEqual(outcome.skipped, 0)
        self.assertEqual(len(outcome.transactions), 2)

        first, second = outcome.transactions
        self.assertEqual(first.date, date(2024, 1, 15))
        self.assertEqual(first.description, 'Grocery Store - Weekly groceries')
        self.assertEqual(first.amount, Decimal('-50.25'))
        # Memo equal to the name is not repeated
        self.assertEqual(second.description, 'Payroll')
        self.assertEqual(second.amount, Decimal('1500.00'))

    def test_sgml_and_xml_agree(self):
        """Test that both OFX dialects yield the same transactions."""
        sgml = parse_ofx_content(self.sgml_content)
        xml = parse_ofx_content(self.xml_content)
        self.assertTrue(xml.success)
        self.assertEqual(sgml.transactions, xml.transactions)
        self.assertEqual(xml.detected_format, OFX_FORMAT)

    def test_bad_records_are_skipped(self):
        """Test that incomplete transaction blocks are counted as skipped."""
        content = (
            '<OFX><BANKTRANLIST>'
            '<STMTTRN><DTPOSTED>2024XX15<TRNAMT>-1.00<NAME>Bad date'
            '<STMTTRN><DTPOSTED>20240115<TRNAMT>abc<NAME>Bad amount'
            '<STMTTRN><DTPOSTED>20240115<TRNAMT>-1.00'
            '<STMTTRN><DTPOSTED>20240116<TRNAMT>-2.00<NAME>Good'
            '</BANKTRANLIST></OFX>'
        )
        outcome = parse_ofx_content(content)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.skipped, 3)
        self.assertEqual([tx.description for tx in outcome.transactions], ['Good'])

    def test_no_transactions(self):
        """Test OFX content without any STMTTRN block."""
        outcome = parse_ofx_content('OFXHEADER:100\n<OFX><BANKMSGSRSV1></BANKMSGSRSV1></OFX>')
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, 'No transactions found in OFX content')

    def test_empty_content(self):
        """Test empty and whitespace-only OFX content."""
        outcome = parse_ofx_content('  ')
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, 'Content is empty')


class TestNormalizeOfxRecord(unittest.TestCase):
    def test_normalize_record(self):
        """Test name and memo are combined into the description."""
        record = OfxTransactionRecord(posted='20240301', amount='-12.00', name='Cafe', memo='Latte')
        tx = normalize_ofx_record(record)
        self.assertEqual(tx.date, date(2024, 3, 1))
        self.assertEqual(tx.amount, Decimal('-12.00'))
        self.assertEqual(tx.description, 'Cafe - Latte')
        self.assertIsNone(tx.category)

    def test_incomplete_records(self):
        """Test records missing a required field or holding bad values."""
        test_cases = [
            OfxTransactionRecord(amount='-12.00', name='Cafe'),
            OfxTransactionRecord(posted='20240301', name='Cafe'),
            OfxTransactionRecord(posted='20240301', amount='-12.00'),
            OfxTransactionRecord(posted='March 1', amount='-12.00', name='Cafe'),
            OfxTransactionRecord(posted='20240301', amount='twelve', name='Cafe'),
        ]
        for record in test_cases:
            with self.subTest(record=record):
                with self.assertRaises(RowParseError):
                    normalize_ofx_record(record)


if __name__ == '__main__':
    unittest.main()
