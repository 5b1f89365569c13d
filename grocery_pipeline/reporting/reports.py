"""
Business reports over the cleaned dataset.

Every report is a pure aggregation: given the same cleaned DataFrame it
returns the same rows in the same order. Nothing here feeds back into the
pipeline.
"""

from pathlib import Path
from typing import Callable, Dict

from pyspark.sql import DataFrame
from pyspark.sql.functions import (
    col,
    count,
    countDistinct,
    date_format,
    lit,
    when,
)
from pyspark.sql.functions import max as spark_max
from pyspark.sql.functions import min as spark_min
from pyspark.sql.functions import sum as spark_sum

from grocery_pipeline.core import columns as c
from grocery_pipeline.core.config import ReportSettings
from grocery_pipeline.observability.logger import get_logger

logger = get_logger(__name__)

ReportFn = Callable[[DataFrame, ReportSettings], DataFrame]


def _null_count(column: str):
    return spark_sum(when(col(column).isNull(), 1).otherwise(0))


# =======================
# DATA QUALITY
# =======================

def record_count(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.agg(count(lit(1)).alias("total_records"))


def null_audit(df: DataFrame, settings: ReportSettings) -> DataFrame:
    """Nulls left in the numeric columns after cleaning."""
    return df.agg(
        _null_count(c.QUANTITY).alias("null_quantity"),
        _null_count(c.UNIT_PRICE).alias("null_unit_price"),
        _null_count(c.DISCOUNT_AMOUNT).alias("null_discount"),
    )


def date_coverage(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.agg(
        spark_min(c.TRANSACTION_DATE).alias("start_date"),
        spark_max(c.TRANSACTION_DATE).alias("end_date"),
        countDistinct(c.TRANSACTION_DATE).alias("active_days"),
    )


# =======================
# SALES
# =======================

def sales_overview(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.agg(
        spark_sum(c.TOTAL_AMOUNT).alias("gross_sales"),
        spark_sum(c.DISCOUNT_AMOUNT).alias("total_discounts"),
        spark_sum(c.FINAL_AMOUNT).alias("net_sales"),
    )


def sales_by_store(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.groupBy(c.STORE_NAME) \
        .agg(spark_sum(c.FINAL_AMOUNT).alias("sales")) \
        .orderBy(col("sales").desc(), col(c.STORE_NAME))


def top_products(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.groupBy(c.PRODUCT_NAME) \
        .agg(spark_sum(c.FINAL_AMOUNT).alias("sales")) \
        .orderBy(col("sales").desc(), col(c.PRODUCT_NAME)) \
        .limit(settings.top_products_limit)


# =======================
# CUSTOMERS
# =======================

def customer_types(df: DataFrame, settings: ReportSettings) -> DataFrame:
    """Customers with more than one transaction are Repeat, the rest One-time."""
    orders = df.groupBy(c.CUSTOMER_ID).agg(count(lit(1)).alias("order_count"))
    return orders \
        .withColumn(
            "customer_type",
            when(col("order_count") > 1, lit("Repeat")).otherwise(lit("One-time"))
        ) \
        .groupBy("customer_type") \
        .agg(count(lit(1)).alias("num_customers")) \
        .orderBy("customer_type")


def lifetime_value(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.groupBy(c.CUSTOMER_ID) \
        .agg(spark_sum(c.FINAL_AMOUNT).alias("lifetime_value")) \
        .orderBy(col("lifetime_value").desc(), col(c.CUSTOMER_ID)) \
        .limit(settings.lifetime_value_limit)


def basket_size(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.groupBy(c.CUSTOMER_ID) \
        .agg(
            countDistinct(c.PRODUCT_NAME).alias("unique_products"),
            spark_sum(c.QUANTITY).alias("total_items"),
        ) \
        .orderBy(col("total_items").desc(), col(c.CUSTOMER_ID)) \
        .limit(settings.basket_size_limit)


def loyalty_engagement(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.groupBy(c.CUSTOMER_ID) \
        .agg(spark_sum(c.LOYALTY_POINTS).alias("total_points")) \
        .orderBy(col("total_points").desc_nulls_last(), col(c.CUSTOMER_ID)) \
        .limit(settings.loyalty_limit)


# =======================
# DISCOUNTS & TRENDS
# =======================

def discount_impact(df: DataFrame, settings: ReportSettings) -> DataFrame:
    """
    Transactions and net sales per discount bucket.

    Buckets: No (0), Low (up to 10), Medium (up to 50), High (above 50).
    """
    discount = col(c.DISCOUNT_AMOUNT)
    bucket = when(discount == 0, lit("No Discount")) \
        .when(discount <= 10, lit("Low Discount")) \
        .when(discount <= 50, lit("Medium Discount")) \
        .otherwise(lit("High Discount"))

    return df.withColumn("discount_bucket", bucket) \
        .groupBy("discount_bucket") \
        .agg(
            count(lit(1)).alias("num_transactions"),
            spark_sum(c.FINAL_AMOUNT).alias("total_sales"),
        ) \
        .orderBy(col("total_sales").desc(), col("discount_bucket"))


def daily_sales(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.groupBy(c.TRANSACTION_DATE) \
        .agg(spark_sum(c.FINAL_AMOUNT).alias("daily_sales")) \
        .orderBy(c.TRANSACTION_DATE)


def monthly_sales(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.withColumn("month", date_format(c.TRANSACTION_DATE, "yyyy-MM")) \
        .groupBy("month") \
        .agg(spark_sum(c.FINAL_AMOUNT).alias("monthly_sales")) \
        .orderBy("month")


def day_of_week_sales(df: DataFrame, settings: ReportSettings) -> DataFrame:
    return df.withColumn("day_of_week", date_format(c.TRANSACTION_DATE, "EEEE")) \
        .groupBy("day_of_week") \
        .agg(spark_sum(c.FINAL_AMOUNT).alias("sales")) \
        .orderBy(col("sales").desc(), col("day_of_week"))


REPORTS: Dict[str, ReportFn] = {
    "record_count": record_count,
    "null_audit": null_audit,
    "date_coverage": date_coverage,
    "sales_overview": sales_overview,
    "sales_by_store": sales_by_store,
    "top_products": top_products,
    "customer_types": customer_types,
    "lifetime_value": lifetime_value,
    "discount_impact": discount_impact,
    "daily_sales": daily_sales,
    "monthly_sales": monthly_sales,
    "day_of_week_sales": day_of_week_sales,
    "basket_size": basket_size,
    "loyalty_engagement": loyalty_engagement,
}


def run_all_reports(df: DataFrame, settings: ReportSettings | None = None) -> Dict[str, DataFrame]:
    """
    Build every report over the cleaned dataset.

    Args:
        df: Published cleaned DataFrame
        settings: LIMIT thresholds (defaults when None)

    Returns:
        Report name -> result DataFrame, in a fixed order
    """
    settings = settings or ReportSettings()
    return {name: report(df, settings) for name, report in REPORTS.items()}


def export_reports(reports: Dict[str, DataFrame], output_dir: str | Path) -> Dict[str, str]:
    """
    Write each report as a single headed CSV directory under output_dir.

    Returns:
        Report name -> output path
    """
    output_dir = Path(output_dir)
    paths = {}
    for name, report_df in reports.items():
        path = str(output_dir / name)
        report_df.coalesce(1).write.mode("overwrite").option("header", "true").csv(path)
        paths[name] = path
        logger.info(f"Exported report {name}", extra={"report": name, "path": path})
    return paths
