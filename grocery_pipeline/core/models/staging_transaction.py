"""
StagingTransaction model for the mutable working set (ephemeral).
"""

from datetime import date
from typing import Any

from pydantic import ConfigDict, Field

from .raw_transaction import RawTransaction


class StagingTransaction(RawTransaction):
    """
    Raw fields plus working artifacts used during the cleaning pass.

    Attributes:
        staging_id: Synthetic identity assigned at ingest, tie-break only
        pricing_issue_flag: unit_price was missing or zero
        discount_issue_flag: ingested discount exceeded the ingested total
    """

    model_config = ConfigDict(frozen=False)

    # Text until the date normalization stage has run
    transaction_date: str | date | None = None

    staging_id: int = Field(..., ge=0)
    pricing_issue_flag: bool = False
    discount_issue_flag: bool = False

    def business_payload(self) -> dict[str, Any]:
        """Business fields only, JSON-safe, for quarantine and audit payloads."""
        return self.model_dump(
            mode="json",
            exclude={"staging_id", "pricing_issue_flag", "discount_issue_flag"},
        )
