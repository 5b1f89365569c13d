"""
Pipeline stages, applied in order: ingest, normalize dates, fill, deduplicate, repair, publish.
"""

from .deduplicate import deduplicate
from .ingest import to_staging
from .normalize import fill_missing_values, normalize_dates
from .publish import PublishedDataset, publish, verify_unique_keys
from .repair import count_quality_issues, flagged_rows, repair_amounts

__all__ = [
    "to_staging",
    "deduplicate",
    "normalize_dates",
    "fill_missing_values",
    "repair_amounts",
    "count_quality_issues",
    "flagged_rows",
    "publish",
    "verify_unique_keys",
    "PublishedDataset",
]
