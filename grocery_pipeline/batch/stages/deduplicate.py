"""
Deduplication stage.

Rows sharing (customer_id, store_name, transaction_date, product_name,
quantity) describe the same purchase. Only the most recently recorded one
survives: highest transaction_date first, then highest staging_id.
"""

from typing import Tuple

from pyspark.sql import DataFrame, Window
from pyspark.sql.functions import col, row_number

from grocery_pipeline.core import columns as c

_RANK = "_dedup_rank"


def deduplicate(df: DataFrame) -> Tuple[DataFrame, int]:
    """
    Collapse duplicate transactions to one surviving row per key.

    Null key parts group together, like SQL PARTITION BY. Running this on an
    already deduplicated set removes nothing.

    If transaction_date is still raw text, textual variants of the same day
    land in different groups; normalize dates first to avoid that. Missing
    values should already be filled, or a null and a 0 quantity stay apart.

    Args:
        df: Staging DataFrame with staging_id

    Returns:
        Tuple of (deduplicated_df, duplicate_count)
    """
    original_count = df.count()

    window = Window.partitionBy(*c.DEDUP_KEY).orderBy(
        col(c.TRANSACTION_DATE).desc(),
        col(c.STAGING_ID).desc()
    )

    deduped_df = df \
        .withColumn(_RANK, row_number().over(window)) \
        .filter(col(_RANK) == 1) \
        .drop(_RANK)

    final_count = deduped_df.count()
    duplicate_count = original_count - final_count

    return deduped_df, duplicate_count
