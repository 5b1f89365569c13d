"""
Error taxonomy for the cleaning pipeline.

FormatError, IntegrityViolation and AmountOutOfRange are fatal to a run.
DataQualityWarning is only ever used as a logging category: quality problems
are recorded as flags on the record and never interrupt processing.
"""

from typing import Any


class PipelineError(Exception):
    """Base class for fatal pipeline errors."""


class FormatError(PipelineError):
    """Raised when a field value does not match its expected textual format."""

    def __init__(
        self,
        field_name: str,
        value: Any,
        message: str,
        staging_id: int | None = None
    ):
        self.field_name = field_name
        self.value = value
        self.message = message
        self.staging_id = staging_id
        location = f" (staging_id={staging_id})" if staging_id is not None else ""
        super().__init__(f"{field_name}{location}: {message}")


class IntegrityViolation(PipelineError):
    """Raised when published records still share a deduplication key."""

    def __init__(self, duplicate_keys: int, sample: list[dict[str, Any]] | None = None):
        self.duplicate_keys = duplicate_keys
        self.sample = sample or []
        super().__init__(
            f"{duplicate_keys} deduplication key(s) appear more than once after publication"
        )


class DataQualityWarning(UserWarning):
    """Non-fatal data anomaly recorded through quality flags."""


class AmountOutOfRange(PipelineError):
    """Raised when a recomputed amount does not fit the decimal(10,2) money columns."""

    def __init__(self, offending_rows: int, staging_ids: list[int] | None = None):
        self.offending_rows = offending_rows
        self.staging_ids = staging_ids or []
        super().__init__(
            f"{offending_rows} record(s) have a recomputed total outside decimal(10,2)"
            + (f" (staging_ids {self.staging_ids})" if self.staging_ids else "")
        )
