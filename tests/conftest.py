"""
Pytest configuration and fixtures for grocery-pipeline tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import os
from decimal import Decimal
from typing import Generator

import pytest
from pyspark.sql import SparkSession
from pyspark.sql.types import BooleanType, LongType, StructField, StructType
from testcontainers.postgres import PostgresContainer

from grocery_pipeline.batch.readers.raw_schema import RAW_TRANSACTION_SCHEMA
from grocery_pipeline.core import columns as c
from grocery_pipeline.warehouse.connection import DatabaseConnectionPool


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("grocery-pipeline-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.adaptive.enabled", "true")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")  # Disable UI for tests
        .config("spark.sql.session.timeZone", "UTC")
        .config("spark.sql.warehouse.dir", "/tmp/spark-warehouse")
        .getOrCreate()
    )

    # Set log level to WARN to reduce test output noise
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


@pytest.fixture(scope="function")
def spark_test_session(spark_session) -> SparkSession:
    """
    Function-scoped Spark session that clears catalog between tests

    Args:
        spark_session: Session-scoped Spark session

    Returns:
        SparkSession for individual test
    """
    spark_session.catalog.clearCache()
    return spark_session


# =======================
# TRANSACTION FIXTURES
# =======================

STAGING_SCHEMA = StructType(RAW_TRANSACTION_SCHEMA.fields + [
    StructField(c.STAGING_ID, LongType(), False),
    StructField(c.PRICING_ISSUE_FLAG, BooleanType(), False),
    StructField(c.DISCOUNT_ISSUE_FLAG, BooleanType(), False),
])


@pytest.fixture
def transaction_row():
    """
    Build a clean raw transaction dict, overriding selected fields.

    The defaults describe a consistent purchase: 3 x 1.49 = 4.47, less 0.50.
    """
    def _row(**overrides):
        row = {
            c.CUSTOMER_ID: 101,
            c.STORE_NAME: "Northside Market",
            c.TRANSACTION_DATE: "14-03-2024",
            c.AISLE: "Dairy",
            c.PRODUCT_NAME: "Whole Milk 1L",
            c.QUANTITY: 3,
            c.UNIT_PRICE: Decimal("1.49"),
            c.TOTAL_AMOUNT: Decimal("4.47"),
            c.DISCOUNT_AMOUNT: Decimal("0.50"),
            c.FINAL_AMOUNT: Decimal("3.97"),
            c.LOYALTY_POINTS: 0,
        }
        row.update(overrides)
        return row

    return _row


@pytest.fixture
def make_raw_df(spark_test_session):
    """
    Build a raw transaction DataFrame from row dicts.

    Missing columns are filled with None.
    """
    def _make(rows):
        names = [field.name for field in RAW_TRANSACTION_SCHEMA.fields]
        data = [tuple(row.get(name) for name in names) for row in rows]
        return spark_test_session.createDataFrame(data, RAW_TRANSACTION_SCHEMA)

    return _make


@pytest.fixture
def make_staging_df(spark_test_session):
    """
    Build a staging DataFrame with explicit staging_ids.

    Each row dict must carry staging_id; flags default to False.
    """
    def _make(rows):
        names = [field.name for field in STAGING_SCHEMA.fields]
        data = []
        for row in rows:
            row = {c.PRICING_ISSUE_FLAG: False, c.DISCOUNT_ISSUE_FLAG: False, **row}
            data.append(tuple(row.get(name) for name in names))
        return spark_test_session.createDataFrame(data, STAGING_SCHEMA)

    return _make


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_datawarehouse"
    ) as postgres:
        # Wait for container to be ready
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="function")
def warehouse_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Open a pool against the test container with empty grocery tables

    Args:
        postgres_container: PostgreSQL container fixture

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_datawarehouse",
        user="test_pipeline",
        password="test_password",
    )
    pool.open()

    for table in ("grocery_raw", "grocery_staging", "grocery_cleaned", "grocery_quarantine"):
        pool.execute_command(f"DROP TABLE IF EXISTS {table}")

    yield pool

    pool.close()


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(scope="session")
def grocery_csv(test_data_dir) -> str:
    """Path to the dirty sample export used by the end-to-end tests."""
    return os.path.join(test_data_dir, "grocery_raw.csv")


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_env_vars():
    """
    Set test environment variables

    This fixture loads config/test.env when present
    """
    from dotenv import load_dotenv

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)
