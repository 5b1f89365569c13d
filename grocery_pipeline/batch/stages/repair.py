"""
Repair stage: recompute monetary fields and raise quality flags.

The arithmetic lives in grocery_pipeline.core.repair; this module only maps
it over the working set so the DataFrame and the pure functions can never
disagree.
"""

from typing import Any, Dict

from pyspark.sql import DataFrame
from pyspark.sql.functions import abs as spark_abs
from pyspark.sql.functions import col, lit, udf
from pyspark.sql.functions import sum as spark_sum
from pyspark.sql.types import BooleanType, DecimalType, IntegerType, StructField, StructType

from grocery_pipeline.batch.readers.raw_schema import MONEY
from grocery_pipeline.core import columns as c
from grocery_pipeline.core.errors import AmountOutOfRange
from grocery_pipeline.core.repair import MAX_MONEY, correct_loyalty_points, repair

_REPAIRED = "_repaired"
OVERFLOW_SAMPLE_SIZE = 5

# int quantity x decimal(10,2) price needs up to 18 integer digits
WORKING_MONEY = DecimalType(20, 2)

_REPAIR_RESULT = StructType([
    StructField(c.TOTAL_AMOUNT, WORKING_MONEY, False),
    StructField(c.DISCOUNT_AMOUNT, WORKING_MONEY, False),
    StructField(c.FINAL_AMOUNT, WORKING_MONEY, False),
    StructField("pricing_issue", BooleanType(), False),
    StructField("discount_issue", BooleanType(), False),
])

_repair_udf = udf(repair, _REPAIR_RESULT)
_loyalty_udf = udf(correct_loyalty_points, IntegerType())


def _check_amount_range(df: DataFrame) -> None:
    overflow = df.filter(spark_abs(col(f"{_REPAIRED}.{c.TOTAL_AMOUNT}")) > lit(MAX_MONEY))
    offending = overflow.count()
    if offending:
        sample = overflow.orderBy(c.STAGING_ID).select(c.STAGING_ID).limit(OVERFLOW_SAMPLE_SIZE).collect()
        raise AmountOutOfRange(offending, [row[c.STAGING_ID] for row in sample])


def repair_amounts(df: DataFrame) -> DataFrame:
    """
    Recompute total, discount and final amounts from quantity and unit price.

    Flags are evaluated against the ingested values before they are
    overwritten, then negative loyalty points are re-derived from the
    repaired final amount.

    Args:
        df: Normalized staging DataFrame

    Returns:
        Staging DataFrame with repaired amounts, flags set and loyalty
        points corrected

    Raises:
        AmountOutOfRange: If a recomputed total does not fit decimal(10,2)
    """
    repaired = df.withColumn(
        _REPAIRED,
        _repair_udf(
            col(c.QUANTITY),
            col(c.UNIT_PRICE),
            col(c.DISCOUNT_AMOUNT),
            col(c.TOTAL_AMOUNT)
        )
    )
    _check_amount_range(repaired)

    # discount and final never exceed |total|, so the narrowing casts are exact
    repaired = repaired \
        .withColumn(c.PRICING_ISSUE_FLAG, col(f"{_REPAIRED}.pricing_issue")) \
        .withColumn(c.DISCOUNT_ISSUE_FLAG, col(f"{_REPAIRED}.discount_issue")) \
        .withColumn(c.TOTAL_AMOUNT, col(f"{_REPAIRED}.{c.TOTAL_AMOUNT}").cast(MONEY)) \
        .withColumn(c.DISCOUNT_AMOUNT, col(f"{_REPAIRED}.{c.DISCOUNT_AMOUNT}").cast(MONEY)) \
        .withColumn(c.FINAL_AMOUNT, col(f"{_REPAIRED}.{c.FINAL_AMOUNT}").cast(MONEY)) \
        .drop(_REPAIRED)

    return repaired.withColumn(
        c.LOYALTY_POINTS,
        _loyalty_udf(col(c.LOYALTY_POINTS), col(c.FINAL_AMOUNT))
    )


def flagged_rows(df: DataFrame) -> DataFrame:
    """Rows of a repaired working set carrying either quality flag, by staging_id."""
    return df \
        .filter(col(c.PRICING_ISSUE_FLAG) | col(c.DISCOUNT_ISSUE_FLAG)) \
        .orderBy(c.STAGING_ID)


def count_quality_issues(before: DataFrame, after: DataFrame) -> Dict[str, int]:
    """
    Count rows flagged by the repair stage.

    Args:
        before: Working set as it entered repair_amounts
        after: Working set returned by repair_amounts

    Returns:
        Dictionary with pricing_issues, discount_issues, loyalty_corrections
    """
    counts: Dict[str, Any] = after.agg(
        spark_sum(col(c.PRICING_ISSUE_FLAG).cast("int")).alias("pricing_issues"),
        spark_sum(col(c.DISCOUNT_ISSUE_FLAG).cast("int")).alias("discount_issues"),
    ).first().asDict()

    counts["loyalty_corrections"] = before.filter(col(c.LOYALTY_POINTS) < 0).count()

    return {name: int(value or 0) for name, value in counts.items()}
