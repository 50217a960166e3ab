"""
Statement import configuration settings.

Preview sizes, synonym tables and the bank-format registry can be adjusted
without code changes, through the environment or by passing a config object.
"""
import logging
import os
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Optional

from utils.bank_formats import BankFormatRegistry
from utils.column_mapper import ColumnSynonyms

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_MAX_ROWS = 50
DEFAULT_SAMPLE_ROWS = 3


@dataclass
class ImportConfig:
    """Configuration for the statement import pipelines."""

    preview_max_rows: int = DEFAULT_PREVIEW_MAX_ROWS
    """Maximum number of tokenized rows returned in a RawPreview."""

    column_info_sample_rows: int = DEFAULT_SAMPLE_ROWS
    """Number of rows after the header returned as ColumnInfo samples."""

    synonyms: ColumnSynonyms = field(default_factory=ColumnSynonyms)
    """Synonym tables used for fuzzy header mapping."""

    bank_formats: BankFormatRegistry = field(default_factory=BankFormatRegistry)
    """Ordered bank-format registry; the first matching format wins."""

    def __post_init__(self):
        if self.preview_max_rows < 1:
            raise ValueError(f"preview_max_rows must be positive, got {self.preview_max_rows}")
        if self.column_info_sample_rows < 0:
            raise ValueError(f"column_info_sample_rows cannot be negative, got {self.column_info_sample_rows}")

    @classmethod
    def from_environment(cls) -> 'ImportConfig':
        """
        Create configuration from environment variables with fallback to defaults.

        Environment variables:
        - STATEMENT_PREVIEW_MAX_ROWS
        - STATEMENT_SAMPLE_ROWS
        - STATEMENT_SYNONYMS_FILE: JSON object of extra synonyms per canonical field
        """
        synonyms_file = os.getenv('STATEMENT_SYNONYMS_FILE')
        synonyms = ColumnSynonyms.from_json_file(synonyms_file) if synonyms_file else ColumnSynonyms()
        return cls(
            preview_max_rows=int(os.getenv('STATEMENT_PREVIEW_MAX_ROWS', DEFAULT_PREVIEW_MAX_ROWS)),
            column_info_sample_rows=int(os.getenv('STATEMENT_SAMPLE_ROWS', DEFAULT_SAMPLE_ROWS)),
            synonyms=synonyms,
        )

    def with_synonyms(self, synonyms: ColumnSynonyms) -> 'ImportConfig':
        return replace(self, synonyms=synonyms)

    def with_bank_formats(self, bank_formats: BankFormatRegistry) -> 'ImportConfig':
        return replace(self, bank_formats=bank_formats)


@lru_cache(maxsize=1)
def get_import_config() -> ImportConfig:
    """Process-wide configuration built from the environment."""
    config = ImportConfig.from_environment()
    logger.debug(f"Loaded import config: preview_max_rows={config.preview_max_rows}, "
                 f"column_info_sample_rows={config.column_info_sample_rows}, "
                 f"bank_formats={len(config.bank_formats)}")
    return config


def resolve_config(config: Optional[ImportConfig]) -> ImportConfig:
    """Use the given config, or the process-wide one."""
    return config if config is not None else get_import_config()
