"""
Batch cleaning pipeline orchestration.

Coordinates the flow: ingest → normalize dates → fill missing values →
deduplicate → repair → publish. Each stage consumes the whole working set before
the next one starts, and any exception halts the run.
"""

import time
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Tuple

from pyspark.sql import DataFrame, SparkSession

from grocery_pipeline.batch.readers import FileReader
from grocery_pipeline.batch.stages import (
    PublishedDataset,
    count_quality_issues,
    deduplicate,
    fill_missing_values,
    flagged_rows,
    normalize_dates,
    publish,
    repair_amounts,
    to_staging,
)
from grocery_pipeline.batch.writers import (
    BatchQuarantineWriter,
    BatchWarehouseWriter,
    RawAuditWriter,
    StagingAuditWriter,
    build_quarantine_records,
)
from grocery_pipeline.core import columns as c
from grocery_pipeline.core.config import PipelineConfig
from grocery_pipeline.core.errors import DataQualityWarning
from grocery_pipeline.core.models import PipelineResult
from grocery_pipeline.observability import metrics
from grocery_pipeline.observability.logger import (
    bind_run,
    get_logger,
    log_quality_summary,
    log_stage,
)
from grocery_pipeline.warehouse.connection import DatabaseConnectionPool

logger = get_logger(__name__)


def new_run_id() -> str:
    return f"run_{datetime.utcnow():%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:8]}"


class GroceryCleaningPipeline:
    """
    Turns a raw point-of-sale snapshot into the cleaned analytical dataset.

    The staging DataFrame is owned by run() for its whole lifetime: stages
    receive it, return a new one, and nothing outside run() sees an
    intermediate state.
    """

    def __init__(
        self,
        spark: SparkSession,
        config: Optional[PipelineConfig] = None,
        pool: Optional[DatabaseConnectionPool] = None
    ):
        """
        Initialize batch pipeline.

        Args:
            spark: Active Spark session
            config: Pipeline settings (defaults when None)
            pool: Open warehouse pool; without one nothing is persisted
        """
        self.spark = spark
        self.config = config or PipelineConfig()
        self.pool = pool

        self.file_reader = FileReader(spark)
        self.quarantine_writer = BatchQuarantineWriter(pool)
        self.raw_writer = RawAuditWriter(pool) if pool is not None else None
        self.staging_writer = StagingAuditWriter(pool) if pool is not None else None
        self.warehouse_writer = BatchWarehouseWriter(pool) if pool is not None else None

    @contextmanager
    def _stage(self, name: str):
        with log_stage(name, logger=logger):
            try:
                with metrics.track_duration(name):
                    yield
            except Exception as e:
                metrics.record_stage_failure(name, e)
                raise

    def run(
        self,
        file_path: str,
        file_format: str = "csv",
        run_id: Optional[str] = None,
        **read_options
    ) -> Tuple[PublishedDataset, PipelineResult]:
        """
        Process a raw snapshot through every stage.

        Args:
            file_path: Path to the raw export
            file_format: csv, json or parquet
            run_id: Identifier for logs and audit tables (generated when None)
            **read_options: Passed to the reader

        Returns:
            Tuple of (published dataset, run summary)

        Raises:
            FormatError: Malformed date with dates.on_malformed = "fail"
            IntegrityViolation: Duplicate key survived to publication
        """
        run_id = run_id or new_run_id()
        with bind_run(run_id):
            return self._execute(file_path, file_format, run_id, read_options)

    def _execute(
        self,
        file_path: str,
        file_format: str,
        run_id: str,
        read_options: dict
    ) -> Tuple[PublishedDataset, PipelineResult]:
        started = time.time()
        dates_first = self.config.dedup.normalize_dates_first
        result = PipelineResult(run_id=run_id, dates_normalized_before_dedup=dates_first)

        logger.info(
            f"Starting cleaning run {run_id} for {file_path}",
            extra={
                "input": file_path,
                "on_malformed_date": self.config.dates.on_malformed,
                "dates_normalized_before_dedup": dates_first,
            }
        )
        if not dates_first:
            logger.warning("Deduplicating on raw date text; textual variants of one date stay separate")

        with self._stage("ingest"):
            raw_df = self.file_reader.read(file_path, file_format=file_format, **read_options)
            if self.raw_writer is not None and self.config.warehouse.persist_raw:
                self.raw_writer.write_dataframe(raw_df, run_id)
            staging = to_staging(raw_df)
            result.total_records = staging.count()
            metrics.increment_counter(metrics.records_processed_total, result.total_records, stage="ingest")

        # Dedup keys are compared on filled values (null quantity == 0)
        if dates_first:
            staging = self._normalize_dates(staging, run_id, result)
            staging = self._fill_missing(staging)
            staging = self._deduplicate(staging, run_id, result)
        else:
            staging = self._fill_missing(staging)
            staging = self._deduplicate(staging, run_id, result)
            staging = self._normalize_dates(staging, run_id, result)

        with self._stage("repair"):
            repaired = repair_amounts(staging).cache()
            issues = count_quality_issues(staging, repaired)
            result.pricing_issues = issues["pricing_issues"]
            result.discount_issues = issues["discount_issues"]
            result.loyalty_corrections = issues["loyalty_corrections"]
            metrics.record_quality_flags(**issues)
            log_quality_summary(
                logger, DataQualityWarning, "Data quality issues flagged during repair", issues
            )

            result.flagged_staging_ids = [
                row[c.STAGING_ID] for row in flagged_rows(repaired).select(c.STAGING_ID).collect()
            ]
            if result.flagged_staging_ids:
                logger.debug(
                    "Flagged staging ids",
                    extra={"staging_ids": result.flagged_staging_ids[:20]}
                )
            if self.staging_writer is not None and self.config.warehouse.persist_staging:
                self.staging_writer.write_dataframe(repaired, run_id)
            staging = repaired

        with self._stage("publish"):
            dataset, exact_duplicates = publish(staging)
            result.exact_duplicates_removed = exact_duplicates
            result.published_records = dataset.count()
            metrics.increment_counter(metrics.duplicates_removed_total, exact_duplicates, stage="publish")
            metrics.increment_counter(
                metrics.records_processed_total, result.published_records, stage="publish"
            )
            if self.warehouse_writer is not None:
                self.warehouse_writer.write_dataset(dataset)

        result.duration_seconds = round(time.time() - started, 3)
        metrics.increment_counter(metrics.runs_total, 1, status="success")
        logger.info(
            f"Cleaning run {run_id} complete",
            extra=result.model_dump(mode="json", exclude={"flagged_staging_ids"})
        )

        return dataset, result

    def _normalize_dates(self, staging: DataFrame, run_id: str, result: PipelineResult) -> DataFrame:
        with self._stage("normalize_dates"):
            normalized, rejected = normalize_dates(staging, self.config.dates.on_malformed)
            quarantined = build_quarantine_records(rejected, run_id)
            result.quarantined_records = len(quarantined)
            if quarantined:
                self.quarantine_writer.write(quarantined)
                metrics.increment_counter(
                    metrics.quarantined_records_total, len(quarantined), rule=quarantined[0].primary_rule
                )
                log_quality_summary(
                    logger,
                    DataQualityWarning,
                    f"Quarantined {len(quarantined)} records with malformed transaction_date",
                    {"quarantined": len(quarantined)},
                )
                logger.debug(
                    "Quarantined staging ids",
                    extra={"staging_ids": [r.staging_id for r in quarantined[:20]]}
                )
            metrics.increment_counter(
                metrics.records_processed_total, normalized.count(), stage="normalize_dates"
            )
            return normalized

    def _fill_missing(self, staging: DataFrame) -> DataFrame:
        with self._stage("fill_missing"):
            return fill_missing_values(staging)

    def _deduplicate(self, staging: DataFrame, run_id: str, result: PipelineResult) -> DataFrame:
        with self._stage("deduplicate"):
            deduped, duplicate_count = deduplicate(staging)
            result.duplicate_records = duplicate_count
            metrics.increment_counter(metrics.duplicates_removed_total, duplicate_count, stage="deduplicate")
            logger.info(
                f"Removed {duplicate_count} duplicate records",
                extra={"duplicates": duplicate_count}
            )
            return deduped
