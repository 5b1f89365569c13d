"""
Command-line interface for the grocery cleaning pipeline.

Usage:
    python -m grocery_pipeline.cli.batch_cli run --input <file_path> [options]
    python -m grocery_pipeline.cli.batch_cli report --input <file_path> [options]
"""

import argparse
import sys
from pathlib import Path

from pyspark.sql import SparkSession

from grocery_pipeline.batch.pipeline import GroceryCleaningPipeline
from grocery_pipeline.core.config import PipelineConfig, SparkSettings, load_config
from grocery_pipeline.core.errors import PipelineError
from grocery_pipeline.observability import metrics
from grocery_pipeline.observability.logger import DEFAULT_LOGGER_NAME, get_logger, setup_logger
from grocery_pipeline.reporting import export_reports, run_all_reports
from grocery_pipeline.warehouse.connection import DatabaseConnectionPool

# Named explicitly: under python -m, __name__ is __main__
logger = get_logger(f"{DEFAULT_LOGGER_NAME}.cli.batch_cli")


def create_spark_session(settings: SparkSettings) -> SparkSession:
    """
    Create Spark session for batch processing.

    Args:
        settings: Spark section of the pipeline config

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(settings.app_name) \
        .master(settings.master) \
        .config("spark.sql.shuffle.partitions", str(settings.shuffle_partitions)) \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.ui.enabled", "false") \
        .getOrCreate()

    return spark


def build_config(args) -> PipelineConfig:
    """Load the config file and apply command-line overrides."""
    config = load_config(args.config)

    if getattr(args, "on_malformed_date", None):
        config.dates.on_malformed = args.on_malformed_date
    if getattr(args, "legacy_dedup_order", False):
        config.dedup.normalize_dates_first = False
    if getattr(args, "publish_to_warehouse", False):
        config.warehouse.enabled = True

    return config


def configure_logging(config: PipelineConfig):
    """Apply the configured log level to every pipeline module."""
    return setup_logger(DEFAULT_LOGGER_NAME, level=config.log_level)


def _run_pipeline(args, config: PipelineConfig):
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {args.input}")
        sys.exit(1)

    if config.metrics_port:
        metrics.start_metrics_server(config.metrics_port)

    spark = create_spark_session(config.spark)
    pool = None
    try:
        if config.warehouse.enabled:
            logger.info("Connecting to warehouse...")
            pool = DatabaseConnectionPool.from_settings(config.warehouse)
            pool.open()

        pipeline = GroceryCleaningPipeline(spark=spark, config=config, pool=pool)
        dataset, result = pipeline.run(str(input_path), file_format=args.format)

        logger.info("=" * 60)
        logger.info("CLEANING COMPLETE")
        logger.info("=" * 60)
        logger.info(f"Raw records ingested: {result.total_records}")
        logger.info(f"Quarantined (bad dates): {result.quarantined_records}")
        logger.info(f"Duplicates removed: {result.duplicate_records}")
        logger.info(f"Pricing issues flagged: {result.pricing_issues}")
        logger.info(f"Discount issues flagged: {result.discount_issues}")
        logger.info(f"Loyalty points corrected: {result.loyalty_corrections}")
        logger.info(f"Published records: {result.published_records}")
        logger.info("=" * 60)

        report_dir = getattr(args, "report_dir", None) or getattr(args, "output_dir", None)
        if args.command == "report" or report_dir:
            reports = run_all_reports(dataset.df, config.reports)
            if report_dir:
                export_reports(reports, report_dir)
            else:
                for name, report_df in reports.items():
                    print(f"\n== {name} ==")
                    report_df.show(truncate=False)

    except PipelineError as e:
        logger.error(f"Cleaning run halted: {e}", exc_info=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error during batch processing: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if pool is not None:
            pool.close()
        spark.stop()


def run_command(args):
    """
    Execute the cleaning pipeline.

    Args:
        args: Command-line arguments
    """
    config = build_config(args)
    configure_logging(config)
    logger.info(f"Starting cleaning run for input: {args.input}")
    _run_pipeline(args, config)


def report_command(args):
    """
    Clean the input and print (or export) every report.

    Args:
        args: Command-line arguments
    """
    config = build_config(args)
    configure_logging(config)
    _run_pipeline(args, config)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--input",
        required=True,
        help="Path to the raw transaction export"
    )
    parser.add_argument(
        "--format",
        default="csv",
        choices=["csv", "json", "parquet"],
        help="Input file format (default: csv)"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to pipeline YAML config (default: config/pipeline.yaml if present)"
    )
    parser.add_argument(
        "--on-malformed-date",
        choices=["quarantine", "fail"],
        default=None,
        help="What to do with dates that are not DD-MM-YYYY"
    )
    parser.add_argument(
        "--legacy-dedup-order",
        action="store_true",
        help="Deduplicate on the raw date text before normalizing dates"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Grocery point-of-sale cleaning pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Clean a CSV export
  python -m grocery_pipeline.cli.batch_cli run --input data/grocery_chain_data.csv

  # Clean and publish to the warehouse, exporting every report as CSV
  DB_PASSWORD=... python -m grocery_pipeline.cli.batch_cli run \\
      --input data/grocery_chain_data.csv --publish-to-warehouse --report-dir out/reports

  # Halt on the first malformed date instead of quarantining
  python -m grocery_pipeline.cli.batch_cli run --input data/grocery_chain_data.csv \\
      --on-malformed-date fail

  # Print the reports
  python -m grocery_pipeline.cli.batch_cli report --input data/grocery_chain_data.csv
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Clean a raw transaction export")
    _add_common_arguments(run_parser)
    run_parser.add_argument(
        "--publish-to-warehouse",
        action="store_true",
        help="Write raw, cleaned and quarantine tables to PostgreSQL"
    )
    run_parser.add_argument(
        "--report-dir",
        default=None,
        help="Also export every report as CSV under this directory"
    )

    report_parser = subparsers.add_parser("report", help="Clean an export and run the reports")
    _add_common_arguments(report_parser)
    report_parser.add_argument(
        "--output-dir",
        default=None,
        help="Export reports as CSV instead of printing them"
    )

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "run":
        run_command(args)
    elif args.command == "report":
        report_command(args)


if __name__ == "__main__":
    main()
