"""
Quarantine handling for rows rejected during date normalization.

Converts the rejected DataFrame into QuarantineRecord models and, when a
warehouse is configured, writes them to grocery_quarantine.
"""

from typing import List, Optional

from pyspark.sql import DataFrame

from grocery_pipeline.batch.stages.normalize import DATE_RULE, ERROR_COLUMN
from grocery_pipeline.core import columns as c
from grocery_pipeline.core.models import QuarantineRecord, StagingTransaction
from grocery_pipeline.warehouse.connection import DatabaseConnectionPool
from grocery_pipeline.warehouse.loaders import QuarantineLoader
from grocery_pipeline.warehouse.schema_mgmt import SchemaManager


def build_quarantine_records(rejected_df: DataFrame, run_id: str) -> List[QuarantineRecord]:
    """
    Convert rejected staging rows into QuarantineRecord models.

    Expected DataFrame schema: staging columns plus _error_message.

    Args:
        rejected_df: Rows removed by normalize_dates
        run_id: Identifier of the current run

    Returns:
        One QuarantineRecord per rejected row, in ingest order
    """
    records = []
    for row in rejected_df.orderBy(c.STAGING_ID).collect():
        record_dict = row.asDict()
        error_message = record_dict.pop(ERROR_COLUMN, None) or "transaction_date could not be parsed"

        staging = StagingTransaction(**record_dict)
        records.append(QuarantineRecord(
            staging_id=staging.staging_id,
            run_id=run_id,
            raw_payload=staging.business_payload(),
            failed_rules=[DATE_RULE],
            error_messages=[error_message]
        ))

    return records


class BatchQuarantineWriter:
    """
    Writes quarantined rows to the warehouse in bulk.
    """

    def __init__(self, pool: Optional[DatabaseConnectionPool]):
        """
        Args:
            pool: Open connection pool, or None to only build the records
        """
        self.pool = pool
        self.schema_manager = SchemaManager(pool) if pool is not None else None
        self.loader = QuarantineLoader(pool) if pool is not None else None

    def write(self, records: List[QuarantineRecord]) -> int:
        """
        Persist quarantine records.

        Returns:
            Number of records written (0 without a warehouse)
        """
        if not records or self.loader is None:
            return 0
        self.schema_manager.ensure_audit_tables()
        return self.loader.load(records)
