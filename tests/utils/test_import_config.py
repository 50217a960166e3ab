"""
Unit tests for import configuration.
"""
import json
import os
import tempfile
import unittest
from unittest.mock import patch

from models.column_mapping import CanonicalField
from utils.bank_formats import BUILT_IN_FORMATS, BankFormatRegistry
from utils.column_mapper import ColumnSynonyms
from utils.import_config import ImportConfig, resolve_config


class TestImportConfig(unittest.TestCase):
    def test_defaults(self):
        """Test default configuration values."""
        config = ImportConfig()
        self.assertEqual(config.preview_max_rows, 50)
        self.assertEqual(config.column_info_sample_rows, 3)
        self.assertEqual(config.synonyms, ColumnSynonyms())
        self.assertEqual(config.bank_formats.formats, BUILT_IN_FORMATS)

    def test_instances_do_not_share_registries(self):
        first = ImportConfig()
        second = ImportConfig()
        self.assertIsNot(first.bank_formats, second.bank_formats)

    def test_validation(self):
        """Test invalid limits are rejected."""
        with self.assertRaises(ValueError):
            ImportConfig(preview_max_rows=0)
        with self.assertRaises(ValueError):
            ImportConfig(column_info_sample_rows=-1)

    @patch.dict(os.environ, {'STATEMENT_PREVIEW_MAX_ROWS': '20', 'STATEMENT_SAMPLE_ROWS': '5'})
    def test_from_environment(self):
        """Test configuration from environment variables."""
        config = ImportConfig.from_environment()
        self.assertEqual(config.preview_max_rows, 20)
        self.assertEqual(config.column_info_sample_rows, 5)

    def test_from_environment_with_synonyms_file(self):
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False, encoding='utf-8') as fh:
            json.dump({'description': ['Beneficiary']}, fh)
            path = fh.name
        try:
            with patch.dict(os.environ, {'STATEMENT_SYNONYMS_FILE': path}):
                config = ImportConfig.from_environment()
        finally:
            os.unlink(path)
        self.assertIn('beneficiary', config.synonyms[CanonicalField.DESCRIPTION])

    def test_with_helpers_return_copies(self):
        config = ImportConfig()
        synonyms = ColumnSynonyms().with_extra('amount', ['Betrag'])
        registry = BankFormatRegistry(BUILT_IN_FORMATS[:2])

        updated = config.with_synonyms(synonyms).with_bank_formats(registry)
        self.assertIs(updated.synonyms, synonyms)
        self.assertIs(updated.bank_formats, registry)
        self.assertEqual(config.synonyms, ColumnSynonyms())
        self.assertEqual(len(config.bank_formats), len(BUILT_IN_FORMATS))

    def test_resolve_config(self):
        """Test explicit config wins over the process-wide one."""
        config = ImportConfig(preview_max_rows=7)
        self.assertIs(resolve_config(config), config)
        self.assertIsInstance(resolve_config(None), ImportConfig)


if __name__ == '__main__':
    unittest.main()
