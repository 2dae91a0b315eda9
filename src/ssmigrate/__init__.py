"""
ssmigrate: Declarative schema migrations for spreadsheets.

ssmigrate compares the columns of Google Sheets tabs with a YAML schema
document and adds, clears or adjusts header columns so the sheet matches it.
"""

__version__ = "0.1.0"
__author__ = "ssmigrate Contributors"

from .config import MigrateSettings
from .exceptions import (
    SsMigrateError,
    ConfigurationError,
    SchemaError,
    StoreError,
    ApplyError,
)

__all__ = [
    "__version__",
    "MigrateSettings",
    "SsMigrateError",
    "ConfigurationError",
    "SchemaError",
    "StoreError",
    "ApplyError",
]
