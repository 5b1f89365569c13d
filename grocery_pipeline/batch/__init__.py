"""
Spark batch cleaning pipeline.
"""

from .pipeline import GroceryCleaningPipeline
from .readers import CSVReader, FileReader
from .stages import PublishedDataset
from .writers import BatchQuarantineWriter, BatchWarehouseWriter, RawAuditWriter, StagingAuditWriter

__all__ = [
    "GroceryCleaningPipeline",
    "PublishedDataset",
    "CSVReader",
    "FileReader",
    "BatchWarehouseWriter",
    "BatchQuarantineWriter",
    "RawAuditWriter",
    "StagingAuditWriter",
]
