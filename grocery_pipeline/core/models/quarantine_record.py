"""
Rows rejected during cleaning, kept with the reasons they were rejected.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuarantineRecord(BaseModel):
    """
    A raw row removed from the working set.

    ``raw_payload`` holds the business fields exactly as ingested (monetary
    values as strings, so the warehouse JSON keeps their cents).
    ``failed_rules[i]`` is explained by ``error_messages[i]``.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "staging_id": 17,
                "run_id": "run_20240314_080000_1a2b3c4d",
                "raw_payload": {
                    "customer_id": 1042,
                    "transaction_date": "2024/03/14",
                    "product_name": "Whole Milk 1L",
                },
                "failed_rules": ["transaction_date_format"],
                "error_messages": [
                    "transaction_date (staging_id=17): '2024/03/14' does not match DD-MM-YYYY"
                ],
            }
        }
    )

    quarantine_id: int | None = None  # assigned by grocery_quarantine
    staging_id: int | None = None
    run_id: str
    raw_payload: dict[str, Any]
    failed_rules: list[str] = Field(..., min_length=1)
    error_messages: list[str] = Field(..., min_length=1)
    quarantined_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def check_reasons_align(self) -> "QuarantineRecord":
        if len(self.error_messages) != len(self.failed_rules):
            raise ValueError(
                f"error_messages length ({len(self.error_messages)}) must match "
                f"failed_rules length ({len(self.failed_rules)})"
            )
        return self

    @property
    def primary_rule(self) -> str:
        return self.failed_rules[0]
