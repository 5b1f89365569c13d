"""
Publication stage: freeze the working set into the cleaned dataset.
"""

from datetime import date
from typing import Any, List, Tuple

from pyspark.sql import DataFrame
from pyspark.sql.functions import col, count, lit

from grocery_pipeline.batch.readers.raw_schema import CLEANED_TRANSACTION_SCHEMA
from grocery_pipeline.core import columns as c
from grocery_pipeline.core.errors import IntegrityViolation
from grocery_pipeline.core.models import CleanedTransaction

INTEGRITY_SAMPLE_SIZE = 5


class PublishedDataset:
    """
    Read-only cleaned dataset with lookups on the indexed columns.

    The underlying DataFrame is cached and ordered by transaction_date so
    equality and range filters on transaction_date, customer_id, store_name
    and product_name stay cheap for reporting. Filtering on any other column
    is rejected; those are not indexed in the warehouse either.
    """

    def __init__(self, df: DataFrame):
        self._df = df.orderBy(c.TRANSACTION_DATE, c.CUSTOMER_ID).cache()

    @property
    def df(self) -> DataFrame:
        return self._df

    def count(self) -> int:
        return self._df.count()

    def where_equals(self, column: str, value: Any) -> DataFrame:
        """Rows whose indexed column equals value."""
        self._check_indexed(column)
        return self._df.filter(col(column) == lit(value))

    def between(self, column: str, low: Any, high: Any) -> DataFrame:
        """Rows whose indexed column lies in [low, high]."""
        self._check_indexed(column)
        return self._df.filter(col(column).between(lit(low), lit(high)))

    def for_period(self, start: date, end: date) -> DataFrame:
        return self.between(c.TRANSACTION_DATE, start, end)

    def to_records(self) -> List[CleanedTransaction]:
        """Materialize as validated models. Intended for small datasets."""
        return [CleanedTransaction(**row.asDict()) for row in self._df.collect()]

    @staticmethod
    def _check_indexed(column: str) -> None:
        if column not in c.INDEXED_COLUMNS:
            raise ValueError(
                f"Column '{column}' is not indexed; lookups are limited to {c.INDEXED_COLUMNS}"
            )


def verify_unique_keys(df: DataFrame) -> None:
    """
    Check no two rows share a deduplication key.

    Raises:
        IntegrityViolation: If any key appears more than once
    """
    collisions = df.groupBy(*c.DEDUP_KEY) \
        .agg(count(lit(1)).alias("occurrences")) \
        .filter(col("occurrences") > 1)

    duplicate_keys = collisions.count()
    if duplicate_keys:
        sample = [row.asDict() for row in collisions.limit(INTEGRITY_SAMPLE_SIZE).collect()]
        raise IntegrityViolation(duplicate_keys, sample)


def publish(df: DataFrame) -> Tuple[PublishedDataset, int]:
    """
    Project the business columns, drop exact duplicates and verify keys.

    transaction_date is cast to a date again even though normalization has
    already typed it; the cast is what the published schema promises.

    Args:
        df: Repaired staging DataFrame

    Returns:
        Tuple of (published dataset, exact duplicates removed)

    Raises:
        IntegrityViolation: If a deduplication key survives twice
    """
    projected = df.select([
        col(field.name).cast(field.dataType).alias(field.name)
        for field in CLEANED_TRANSACTION_SCHEMA.fields
    ])

    before = projected.count()
    distinct = projected.dropDuplicates()
    removed = before - distinct.count()

    verify_unique_keys(distinct)

    return PublishedDataset(distinct), removed
