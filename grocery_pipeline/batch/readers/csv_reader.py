"""
CSV reader for raw point-of-sale exports.
"""

from typing import Optional

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType

from .raw_schema import RAW_TRANSACTION_SCHEMA

# Spark CSV options matching the POS export: header row, blank cell = null,
# unparseable numbers become null rather than failing the read.
POS_EXPORT_OPTIONS = {
    "header": "true",
    "nullValue": "",
    "mode": "PERMISSIVE",
    "ignoreLeadingWhiteSpace": "true",
    "ignoreTrailingWhiteSpace": "true",
}


class CSVReader:
    """
    Reads raw transaction CSV files with a fixed, all-nullable schema.

    No schema inference: transaction_date stays text so the normalization
    stage can see exactly what the source system wrote.
    """

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def read(
        self,
        file_path: str,
        schema: Optional[StructType] = None,
        delimiter: str = ",",
        **options
    ) -> DataFrame:
        """
        Load a POS export.

        Args:
            file_path: CSV file or directory of part files
            schema: Override for the raw transaction schema
            delimiter: Field delimiter
            **options: Extra Spark CSV options, applied over the export defaults

        Returns:
            One row per raw record, columns in RAW_TRANSACTION_SCHEMA order
        """
        reader_options = {**POS_EXPORT_OPTIONS, "delimiter": delimiter, **options}
        return (
            self.spark.read
            .schema(schema or RAW_TRANSACTION_SCHEMA)
            .options(**reader_options)
            .csv(file_path)
        )
