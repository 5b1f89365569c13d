"""
Batch warehouse writers for the raw audit trail and the cleaned dataset.
"""

from pyspark.sql import DataFrame

from grocery_pipeline.batch.stages.publish import PublishedDataset
from grocery_pipeline.core import columns as c
from grocery_pipeline.core.models import RawTransaction, StagingTransaction
from grocery_pipeline.observability.logger import get_logger
from grocery_pipeline.warehouse.connection import DatabaseConnectionPool
from grocery_pipeline.warehouse.loaders import (
    CleanedTransactionLoader,
    RawTransactionLoader,
    StagingTransactionLoader,
)
from grocery_pipeline.warehouse.schema_mgmt import SchemaManager

logger = get_logger(__name__)


class RawAuditWriter:
    """
    Appends the raw snapshot to grocery_raw before any cleaning happens.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool
        self.schema_manager = SchemaManager(pool)
        self.loader = RawTransactionLoader(pool)

    def write_dataframe(self, raw_df: DataFrame, run_id: str) -> int:
        """
        Write raw rows verbatim.

        Args:
            raw_df: DataFrame straight from the reader
            run_id: Identifier of the current run

        Returns:
            Number of rows written
        """
        self.schema_manager.ensure_audit_tables()

        records = [
            RawTransaction(**{name: row[name] for name in c.BUSINESS_COLUMNS})
            for row in raw_df.collect()
        ]
        return self.loader.load(records, run_id)


class StagingAuditWriter:
    """
    Keeps the repaired working set, quality flags included, in grocery_staging.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool
        self.schema_manager = SchemaManager(pool)
        self.loader = StagingTransactionLoader(pool)

    def write_dataframe(self, staging_df: DataFrame, run_id: str) -> int:
        self.schema_manager.ensure_audit_tables()

        columns = [c.STAGING_ID, *c.BUSINESS_COLUMNS, c.PRICING_ISSUE_FLAG, c.DISCOUNT_ISSUE_FLAG]
        records = [
            StagingTransaction(**{name: row[name] for name in columns})
            for row in staging_df.select(columns).collect()
        ]
        count = self.loader.load(records, run_id)
        logger.info(
            f"Stored {count} repaired staging rows for audit",
            extra={"records": count}
        )
        return count


class BatchWarehouseWriter:
    """
    Publishes the cleaned dataset to grocery_cleaned and builds its indexes.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize batch warehouse writer.

        Args:
            pool: Database connection pool
        """
        self.pool = pool
        self.schema_manager = SchemaManager(pool)
        self.loader = CleanedTransactionLoader(pool)

    def write_dataset(self, dataset: PublishedDataset) -> int:
        """
        Replace grocery_cleaned with the published dataset.

        Rows are validated as CleanedTransaction models before insert, and
        the secondary indexes are created once the load is complete.

        Args:
            dataset: Output of the publication stage

        Returns:
            Number of records written
        """
        records = dataset.to_records()

        self.schema_manager.recreate_cleaned_table()
        count = self.loader.load(records)
        self.schema_manager.create_cleaned_indexes()

        logger.info(
            f"Published {count} records to warehouse",
            extra={"records": count}
        )
        return count
