"""
Unit tests for fuzzy column mapping.
"""
import json
import os
import tempfile
import unittest

from models.column_mapping import AmountType, CanonicalField
from utils.column_mapper import (
    ColumnSynonyms,
    find_matching_column,
    matches_synonym,
    normalize_header,
    suggest_mapping,
)


class TestMatching(unittest.TestCase):
    def test_normalize_header(self):
        self.assertEqual(normalize_header('  Transaction_Date '), 'transaction date')
        self.assertEqual(normalize_header('Money-In'), 'money in')

    def test_matches_synonym(self):
        """Test equality and containment matching."""
        test_cases = [
            ('Date', True),
            ('Transaction Date', True),
            ('POSTING_DATE', True),
            ('Dt', False),
            ('', False),
            ('   ', False),
        ]
        synonyms = ColumnSynonyms()[CanonicalField.DATE]
        for header, expected in test_cases:
            with self.subTest(header=header):
                self.assertEqual(matches_synonym(header, synonyms), expected)

    def test_find_matching_column_uses_column_order(self):
        headers = ['Post Date', 'Transaction Date', 'Description']
        self.assertEqual(find_matching_column(headers, ColumnSynonyms()[CanonicalField.DATE]), 'Post Date')


class TestSuggestMapping(unittest.TestCase):
    def test_single_amount(self):
        """Test suggesting a single amount mapping."""
        mapping = suggest_mapping(['Date', 'Description', 'Amount', 'Balance'])
        self.assertIsNotNone(mapping)
        self.assertEqual(mapping.amount_type, AmountType.SINGLE)
        self.assertEqual(mapping.date, 'Date')
        self.assertEqual(mapping.description, 'Description')
        self.assertEqual(mapping.amount, 'Amount')
        self.assertEqual(mapping.balance, 'Balance')
        self.assertIsNone(mapping.debit)
        self.assertIsNone(mapping.credit)

    def test_split_amount(self):
        """Test suggesting a debit/credit mapping."""
        mapping = suggest_mapping(['Posting Date', 'Payee', 'Withdrawals', 'Deposits'])
        self.assertIsNotNone(mapping)
        self.assertEqual(mapping.amount_type, AmountType.SPLIT)
        self.assertEqual(mapping.date, 'Posting Date')
        self.assertEqual(mapping.description, 'Payee')
        self.assertEqual(mapping.debit, 'Withdrawals')
        self.assertEqual(mapping.credit, 'Deposits')
        self.assertIsNone(mapping.amount)

    def test_blank_headers_do_not_match(self):
        """Test blank headers never match a synonym."""
        mapping = suggest_mapping(['', 'Date', 'Description', 'Amount'])
        self.assertEqual(mapping.date, 'Date')

    def test_unusable_headers(self):
        test_cases = [
            ['foo', 'bar'],
            ['Date', 'Amount'],
            ['Date', 'Description', 'Withdrawals'],
            [],
        ]
        for headers in test_cases:
            with self.subTest(headers=headers):
                self.assertIsNone(suggest_mapping(headers))

    def test_extra_synonyms(self):
        """Test extending synonyms."""
        headers = ['Date', 'Beneficiary', 'Amount']
        self.assertIsNone(suggest_mapping(headers))

        synonyms = ColumnSynonyms().with_extra('description', ['Beneficiary'])
        mapping = suggest_mapping(headers, synonyms)
        self.assertEqual(mapping.description, 'Beneficiary')


class TestColumnSynonyms(unittest.TestCase):
    def test_defaults_are_normalized(self):
        synonyms = ColumnSynonyms()
        self.assertIn('trans. date', synonyms[CanonicalField.DATE])
        self.assertIn('money out', synonyms[CanonicalField.DEBIT])

    def test_merged_returns_copy(self):
        base = ColumnSynonyms()
        extended = base.merged({CanonicalField.CATEGORY: ['Spend Group', 'category']})
        self.assertNotIn('spend group', base[CanonicalField.CATEGORY])
        self.assertEqual(extended[CanonicalField.CATEGORY][-1], 'spend group')
        self.assertEqual(extended[CanonicalField.CATEGORY].count('category'), 1)
        self.assertNotEqual(base, extended)
        self.assertEqual(base, ColumnSynonyms())

    def test_unknown_field_rejected(self):
        with self.assertRaises(ValueError):
            ColumnSynonyms().merged({'payee_name': ['x']})

    def test_from_json_file(self):
        """Test loading extra synonyms from JSON."""
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False, encoding='utf-8') as fh:
            json.dump({'description': ['Beneficiary'], 'amount': ['Betrag']}, fh)
            path = fh.name
        try:
            synonyms = ColumnSynonyms.from_json_file(path)
        finally:
            os.unlink(path)
        self.assertIn('beneficiary', synonyms[CanonicalField.DESCRIPTION])
        self.assertIn('betrag', synonyms[CanonicalField.AMOUNT])
        self.assertIn('amount', synonyms[CanonicalField.AMOUNT])
        self.assertEqual(synonyms.as_dict()['amount'][-1], 'betrag')

    def test_from_json_file_requires_object(self):
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False, encoding='utf-8') as fh:
            json.dump(['Beneficiary'], fh)
            path = fh.name
        try:
            with self.assertRaises(ValueError):
                ColumnSynonyms.from_json_file(path)
        finally:
            os.unlink(path)


if __name__ == '__main__':
    unittest.main()
