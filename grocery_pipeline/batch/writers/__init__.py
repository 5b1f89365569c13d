"""
Batch data writers.
"""

from .quarantine_writer import BatchQuarantineWriter, build_quarantine_records
from .warehouse_writer import BatchWarehouseWriter, RawAuditWriter, StagingAuditWriter

__all__ = [
    "BatchWarehouseWriter",
    "BatchQuarantineWriter",
    "RawAuditWriter",
    "StagingAuditWriter",
    "build_quarantine_records",
]
