"""
RawTransaction model representing a point-of-sale row exactly as ingested.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class RawTransaction(BaseModel):
    """
    Unvalidated transaction record, retained as the audit source of truth.

    Every field is optional and transaction_date is free text; nothing here
    is corrected or defaulted.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "customer_id": 1042,
                "store_name": "Northside Market",
                "transaction_date": "14-03-2024",
                "aisle": "Dairy",
                "product_name": "Whole Milk 1L",
                "quantity": 3,
                "unit_price": "1.49",
                "total_amount": "4.47",
                "discount_amount": "0.50",
                "final_amount": "3.97",
                "loyalty_points": 0,
            }
        },
    )

    customer_id: int | None = None
    store_name: str | None = None
    transaction_date: str | None = None
    aisle: str | None = None
    product_name: str | None = None
    quantity: int | None = None
    unit_price: Decimal | None = None
    total_amount: Decimal | None = None
    discount_amount: Decimal | None = None
    final_amount: Decimal | None = None
    loyalty_points: int | None = None
