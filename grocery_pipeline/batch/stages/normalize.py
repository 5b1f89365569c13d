"""
Normalization stage: typed dates and filled-in missing values.
"""

from datetime import date
from typing import Literal, Optional, Tuple

from pyspark.sql import DataFrame
from pyspark.sql.functions import coalesce, col, lit, udf, when
from pyspark.sql.types import DateType, StringType, StructField, StructType

from grocery_pipeline.core import columns as c
from grocery_pipeline.core.dates import parse_transaction_date
from grocery_pipeline.core.errors import FormatError

DATE_RULE = "transaction_date_format"
ERROR_COLUMN = "_error_message"

_PARSED = "_parsed_date"
_PARSE_RESULT = StructType([
    StructField("value", DateType(), True),
    StructField("error", StringType(), True),
])


def _parse_or_explain(value, staging_id) -> Tuple[Optional[date], Optional[str]]:
    try:
        return parse_transaction_date(value, staging_id), None
    except FormatError as e:
        return None, str(e)


_parse_date_udf = udf(_parse_or_explain, _PARSE_RESULT)


def normalize_dates(
    df: DataFrame,
    on_malformed: Literal["quarantine", "fail"] = "quarantine"
) -> Tuple[DataFrame, DataFrame]:
    """
    Convert DD-MM-YYYY transaction_date text to a DateType column.

    Args:
        df: Staging DataFrame
        on_malformed: "quarantine" splits malformed rows out, "fail" raises

    Returns:
        Tuple of (normalized_df, rejected_df). rejected_df keeps the original
        text date and carries the reason in _error_message.

    Raises:
        FormatError: In "fail" mode, for the earliest ingested malformed row
    """
    parsed = df.withColumn(
        _PARSED,
        _parse_date_udf(col(c.TRANSACTION_DATE), col(c.STAGING_ID))
    )
    malformed = parsed.filter(col(f"{_PARSED}.error").isNotNull())

    if on_malformed == "fail":
        first_bad = malformed.orderBy(c.STAGING_ID).select(c.TRANSACTION_DATE, c.STAGING_ID).first()
        if first_bad is not None:
            # Re-parse locally so the caller gets the real FormatError
            parse_transaction_date(first_bad[c.TRANSACTION_DATE], first_bad[c.STAGING_ID])

    normalized_df = parsed \
        .filter(col(f"{_PARSED}.error").isNull()) \
        .withColumn(c.TRANSACTION_DATE, col(f"{_PARSED}.value")) \
        .drop(_PARSED)

    rejected_df = malformed \
        .withColumn(ERROR_COLUMN, col(f"{_PARSED}.error")) \
        .drop(_PARSED)

    return normalized_df, rejected_df


def fill_missing_values(df: DataFrame) -> DataFrame:
    """
    Replace null or empty categorical text with UNKNOWN and null counts with 0.

    unit_price and the totals are deliberately left alone: a missing price is
    a data quality signal for the repair stage, not a zero.
    """
    for column in c.TEXT_COLUMNS:
        df = df.withColumn(
            column,
            when(col(column).isNull() | (col(column) == ""), lit(c.UNKNOWN)).otherwise(col(column))
        )

    for column in c.ZERO_FILLED_COLUMNS:
        column_type = df.schema[column].dataType
        df = df.withColumn(column, coalesce(col(column), lit(0).cast(column_type)))

    return df
