"""
Spark schemas for the raw feed and the cleaned dataset.
"""

from pyspark.sql.types import (
    DateType,
    DecimalType,
    IntegerType,
    StringType,
    StructField,
    StructType,
)

from grocery_pipeline.core import columns as c

# decimal(10,2) in the source system
MONEY = DecimalType(10, 2)

RAW_TRANSACTION_SCHEMA = StructType([
    StructField(c.CUSTOMER_ID, IntegerType(), True),
    StructField(c.STORE_NAME, StringType(), True),
    StructField(c.TRANSACTION_DATE, StringType(), True),
    StructField(c.AISLE, StringType(), True),
    StructField(c.PRODUCT_NAME, StringType(), True),
    StructField(c.QUANTITY, IntegerType(), True),
    StructField(c.UNIT_PRICE, MONEY, True),
    StructField(c.TOTAL_AMOUNT, MONEY, True),
    StructField(c.DISCOUNT_AMOUNT, MONEY, True),
    StructField(c.FINAL_AMOUNT, MONEY, True),
    StructField(c.LOYALTY_POINTS, IntegerType(), True),
])

CLEANED_TRANSACTION_SCHEMA = StructType([
    StructField(c.CUSTOMER_ID, IntegerType(), True),
    StructField(c.STORE_NAME, StringType(), False),
    StructField(c.TRANSACTION_DATE, DateType(), False),
    StructField(c.AISLE, StringType(), False),
    StructField(c.PRODUCT_NAME, StringType(), False),
    StructField(c.QUANTITY, IntegerType(), False),
    StructField(c.UNIT_PRICE, MONEY, True),
    StructField(c.TOTAL_AMOUNT, MONEY, False),
    StructField(c.DISCOUNT_AMOUNT, MONEY, False),
    StructField(c.FINAL_AMOUNT, MONEY, False),
    StructField(c.LOYALTY_POINTS, IntegerType(), True),
])
