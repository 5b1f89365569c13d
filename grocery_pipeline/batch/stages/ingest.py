"""
Ingest stage: turn the raw snapshot into the staging working set.
"""

from pyspark.sql import DataFrame
from pyspark.sql.functions import lit, monotonically_increasing_id

from grocery_pipeline.core import columns as c


def to_staging(raw_df: DataFrame) -> DataFrame:
    """
    Attach a synthetic identity and cleared quality flags to every raw row.

    staging_id increases in read order. It is only used to break ties during
    deduplication and to identify quarantined rows, never as a business key.
    The result is checkpointed so the ids stay stable across the actions
    later stages run.

    Args:
        raw_df: Raw transactions, untouched

    Returns:
        Staging DataFrame: raw columns + staging_id + both quality flags
    """
    staging = raw_df \
        .withColumn(c.STAGING_ID, monotonically_increasing_id()) \
        .withColumn(c.PRICING_ISSUE_FLAG, lit(False)) \
        .withColumn(c.DISCOUNT_ISSUE_FLAG, lit(False))

    return staging.localCheckpoint(eager=True)
