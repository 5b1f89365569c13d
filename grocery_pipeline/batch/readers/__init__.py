"""
Raw transaction feed readers.
"""

from .csv_reader import CSVReader
from .file_reader import FileReader
from .raw_schema import CLEANED_TRANSACTION_SCHEMA, RAW_TRANSACTION_SCHEMA

__all__ = [
    "CSVReader",
    "FileReader",
    "RAW_TRANSACTION_SCHEMA",
    "CLEANED_TRANSACTION_SCHEMA",
]
