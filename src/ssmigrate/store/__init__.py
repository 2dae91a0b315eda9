"""
Spreadsheet store package for ssmigrate.

This package provides:
- The store contract used by the reconciliation engine
- A Google Sheets implementation over the Sheets v4 REST API
- A1 notation helpers
"""

from .base import ColumnMetadata, Store
from .factory import StoreFactory
from .notation import column_to_letter, letter_to_column
from .sheets import GoogleSheetsStore, extract_spreadsheet_id

__all__ = [
    "ColumnMetadata",
    "Store",
    "StoreFactory",
    "GoogleSheetsStore",
    "extract_spreadsheet_id",
    "column_to_letter",
    "letter_to_column",
]
