"""
Prometheus metrics for the grocery cleaning pipeline

Counters and histograms describing each batch run: how many rows every
stage saw, how many were discarded, and which quality flags fired.
"""
import os
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

records_processed_total = Counter(
    name="pipeline_records_processed_total",
    documentation="Rows leaving each pipeline stage",
    labelnames=["stage"],
    registry=REGISTRY,
)

duplicates_removed_total = Counter(
    name="pipeline_duplicates_removed_total",
    documentation="Rows discarded as duplicates",
    labelnames=["stage"],  # stage: deduplicate, publish
    registry=REGISTRY,
)

stage_duration_seconds = Histogram(
    name="pipeline_stage_duration_seconds",
    documentation="Time spent in each pipeline stage",
    labelnames=["stage"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

runs_total = Counter(
    name="pipeline_runs_total",
    documentation="Completed pipeline runs",
    labelnames=["status"],  # status: success, failure
    registry=REGISTRY,
)

errors_total = Counter(
    name="pipeline_errors_total",
    documentation="Fatal errors by stage",
    labelnames=["stage", "error_type"],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

quality_flags_total = Counter(
    name="pipeline_quality_flags_total",
    documentation="Rows carrying a data quality flag",
    labelnames=["flag"],  # flag: pricing_issue, discount_issue, loyalty_correction
    registry=REGISTRY,
)

quarantined_records_total = Counter(
    name="pipeline_quarantined_records_total",
    documentation="Rows removed from the working set and quarantined",
    labelnames=["rule"],
    registry=REGISTRY,
)


# =======================
# METRICS EXPORT
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


# =======================
# HELPERS
# =======================

class track_duration:
    """
    Context manager for tracking stage duration

    Usage:
        with track_duration("deduplicate"):
            ...
    """

    def __init__(self, stage: str):
        self.stage = stage
        self.timer = None

    def __enter__(self):
        self.timer = stage_duration_seconds.labels(stage=self.stage).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric, ignoring zero increments

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if value:
        counter.labels(**labels).inc(value)


def record_quality_flags(pricing_issues: int, discount_issues: int, loyalty_corrections: int) -> None:
    """Record counts of rows flagged by the repair stage."""
    increment_counter(quality_flags_total, pricing_issues, flag="pricing_issue")
    increment_counter(quality_flags_total, discount_issues, flag="discount_issue")
    increment_counter(quality_flags_total, loyalty_corrections, flag="loyalty_correction")


def record_stage_failure(stage: str, error: BaseException) -> None:
    """Record a fatal error raised inside a stage."""
    increment_counter(errors_total, 1, stage=stage, error_type=type(error).__name__)
    increment_counter(runs_total, 1, status="failure")
