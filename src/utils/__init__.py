"""
Utils package.

Pure helpers used by the import services:
- Tokenizing and dialect detection for delimited text.
- Value normalization (dates, amounts, split debit/credit columns).
- Fuzzy header mapping and the ordered bank-format registry.
- OFX block scanning for both the SGML and XML syntaxes.
- Environment-driven configuration and logging setup.

Nothing in here performs I/O on statement content or keeps state between calls.
"""
