"""
Statement file formats recognized by content sniffing.
"""
import enum


class StatementFormat(str, enum.Enum):
    """Enum for statement file formats"""
    CSV = "csv"
    OFX = "ofx"
    OTHER = "other"
