"""
Record models for the grocery cleaning pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .cleaned_transaction import CleanedTransaction
from .pipeline_result import PipelineResult
from .quarantine_record import QuarantineRecord
from .raw_transaction import RawTransaction
from .staging_transaction import StagingTransaction

__all__ = [
    "RawTransaction",
    "StagingTransaction",
    "CleanedTransaction",
    "QuarantineRecord",
    "PipelineResult",
]
