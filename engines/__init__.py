# engines/__init__.py
"""
Spreadsheet ingestion pipeline: cell normalization, header classification,
record parsing and import orchestration.
"""
