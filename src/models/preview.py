"""
Read-only previews of a delimited statement for interactive column mapping.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.column_mapping import ColumnMapping


class RawPreview(BaseModel):
    """
    Tokenized leading rows of a file plus the detected layout.

    ``raw_rows`` is capped (50 rows by default) to bound the payload handed to
    a mapping UI; ``total_rows`` still counts every non-empty line.
    """
    raw_rows: List[List[str]] = Field(alias="rawRows")
    total_rows: int = Field(alias="totalRows", ge=0)
    detected_header_row: int = Field(alias="detectedHeaderRow", ge=0)
    detected_delimiter: str = Field(alias="detectedDelimiter", min_length=1, max_length=1)
    suggested_mapping: Optional[ColumnMapping] = Field(default=None, alias="suggestedMapping")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def headers(self) -> List[str]:
        """Row at the detected header index, or an empty list if it was cut off by the cap."""
        if self.detected_header_row < len(self.raw_rows):
            return list(self.raw_rows[self.detected_header_row])
        return []


class ColumnInfo(BaseModel):
    """Header names with a few sample rows keyed by header."""
    columns: List[str]
    sample_data: List[Dict[str, str]] = Field(default_factory=list, alias="sampleData")
    suggested_mapping: Optional[ColumnMapping] = Field(default=None, alias="suggestedMapping")

    model_config = ConfigDict(populate_by_name=True, frozen=True)
