"""
Column names shared by every stage of the pipeline.
"""

CUSTOMER_ID = "customer_id"
STORE_NAME = "store_name"
TRANSACTION_DATE = "transaction_date"
AISLE = "aisle"
PRODUCT_NAME = "product_name"
QUANTITY = "quantity"
UNIT_PRICE = "unit_price"
TOTAL_AMOUNT = "total_amount"
DISCOUNT_AMOUNT = "discount_amount"
FINAL_AMOUNT = "final_amount"
LOYALTY_POINTS = "loyalty_points"

# Working artifacts, never published
STAGING_ID = "staging_id"
PRICING_ISSUE_FLAG = "pricing_issue_flag"
DISCOUNT_ISSUE_FLAG = "discount_issue_flag"

BUSINESS_COLUMNS = [
    CUSTOMER_ID,
    STORE_NAME,
    TRANSACTION_DATE,
    AISLE,
    PRODUCT_NAME,
    QUANTITY,
    UNIT_PRICE,
    TOTAL_AMOUNT,
    DISCOUNT_AMOUNT,
    FINAL_AMOUNT,
    LOYALTY_POINTS,
]

DEDUP_KEY = [CUSTOMER_ID, STORE_NAME, TRANSACTION_DATE, PRODUCT_NAME, QUANTITY]

INDEXED_COLUMNS = [TRANSACTION_DATE, CUSTOMER_ID, STORE_NAME, PRODUCT_NAME]

TEXT_COLUMNS = [STORE_NAME, AISLE, PRODUCT_NAME]
ZERO_FILLED_COLUMNS = [QUANTITY, DISCOUNT_AMOUNT]

UNKNOWN = "UNKNOWN"
