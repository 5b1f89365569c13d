"""
PipelineResult model summarising one batch run (ephemeral, logged and returned).
"""

from datetime import datetime

from pydantic import BaseModel, Field


class PipelineResult(BaseModel):
    """
    Counts collected while a run moves through its stages.

    Attributes:
        run_id: Identifier of the run
        total_records: Rows ingested from the raw feed
        quarantined_records: Rows rejected by date normalization
        duplicate_records: Rows discarded by deduplication
        exact_duplicates_removed: Rows dropped by the publication safety net
        pricing_issues: Rows flagged for missing or zero unit_price
        discount_issues: Rows flagged for a discount above the ingested total
        loyalty_corrections: Rows whose negative loyalty points were replaced
        flagged_staging_ids: staging_id of every row with a pricing or discount flag
        published_records: Rows in the cleaned dataset
        dates_normalized_before_dedup: Which stage order the run used
    """

    run_id: str
    started_at: datetime = Field(default_factory=datetime.utcnow)
    total_records: int = Field(0, ge=0)
    quarantined_records: int = Field(0, ge=0)
    duplicate_records: int = Field(0, ge=0)
    exact_duplicates_removed: int = Field(0, ge=0)
    pricing_issues: int = Field(0, ge=0)
    discount_issues: int = Field(0, ge=0)
    loyalty_corrections: int = Field(0, ge=0)
    flagged_staging_ids: list[int] = Field(default_factory=list)
    published_records: int = Field(0, ge=0)
    dates_normalized_before_dedup: bool = True
    duration_seconds: float = Field(0.0, ge=0.0)
