"""
CleanedTransaction model representing a published analytical record.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CleanedTransaction(BaseModel):
    """
    Final, validated transaction. Read-only once published.

    Monetary fields are internally consistent:
    total = quantity * unit_price, discount within [0, total],
    final = max(total - discount, 0).
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "customer_id": 1042,
                "store_name": "Northside Market",
                "transaction_date": "2024-03-14",
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
    store_name: str = Field(..., min_length=1)
    transaction_date: date
    aisle: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    quantity: int
    # Left as ingested; a missing price is flagged upstream, not defaulted
    unit_price: Decimal | None = None
    total_amount: Decimal
    discount_amount: Decimal = Field(..., ge=0)
    final_amount: Decimal = Field(..., ge=0)
    loyalty_points: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def check_amounts_consistent(self):
        """Validate the recomputed monetary fields agree with each other."""
        expected_total = self.quantity * (self.unit_price or Decimal("0"))
        if self.total_amount != expected_total:
            raise ValueError(
                f"total_amount {self.total_amount} != quantity * unit_price ({expected_total})"
            )
        if self.discount_amount > max(self.total_amount, Decimal("0")):
            raise ValueError(
                f"discount_amount {self.discount_amount} exceeds total_amount {self.total_amount}"
            )
        expected_final = max(self.total_amount - self.discount_amount, Decimal("0"))
        if self.final_amount != expected_final:
            raise ValueError(
                f"final_amount {self.final_amount} != max(total - discount, 0) ({expected_final})"
            )
        return self
