"""
Raw feed reader for the supported export formats (CSV, JSON, Parquet).
"""

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.functions import col

from .csv_reader import CSVReader
from .raw_schema import RAW_TRANSACTION_SCHEMA

SUPPORTED_FORMATS = ("csv", "json", "parquet")


def project_raw_columns(df: DataFrame) -> DataFrame:
    """Select and cast the raw transaction columns, in schema order."""
    return df.select([
        col(field.name).cast(field.dataType).alias(field.name)
        for field in RAW_TRANSACTION_SCHEMA.fields
    ])


class FileReader:
    """
    Reads a raw transaction snapshot regardless of export format.

    JSON and Parquet exports are projected onto the raw transaction schema
    so downstream stages always see the same columns and types.
    """

    def __init__(self, spark: SparkSession):
        self.spark = spark
        self.csv_reader = CSVReader(spark)

    def read(self, file_path: str, file_format: str = "csv", **options) -> DataFrame:
        """
        Read a raw snapshot.

        Raises:
            ValueError: If file_format is not one of SUPPORTED_FORMATS
        """
        file_format = file_format.lower()
        if file_format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported file format: {file_format} (expected one of {', '.join(SUPPORTED_FORMATS)})"
            )

        if file_format == "csv":
            return self.csv_reader.read(file_path, **options)
        if file_format == "json":
            df = self.spark.read.schema(RAW_TRANSACTION_SCHEMA).options(**options).json(file_path)
        else:
            df = self.spark.read.options(**options).parquet(file_path)
        return project_raw_columns(df)
