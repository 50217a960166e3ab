"""
Services package.

Import pipelines for CSV and OFX statements and the statement-level
dispatcher that decodes raw bytes and routes them to the right pipeline.
"""
