"""
Integration tests for the warehouse layer using a PostgreSQL testcontainer.

Tests the connection pool, table management, and the bulk loaders.
"""

from datetime import date
from decimal import Decimal

import psycopg
import pytest

from grocery_pipeline.core.models import (
    CleanedTransaction,
    QuarantineRecord,
    RawTransaction,
    StagingTransaction,
)
from grocery_pipeline.warehouse.connection import DatabaseConnectionPool
from grocery_pipeline.warehouse.loaders import (
    CleanedTransactionLoader,
    QuarantineLoader,
    RawTransactionLoader,
    StagingTransactionLoader,
)
from grocery_pipeline.warehouse.schema_mgmt import CLEANED_INDEXES, SchemaManager


def _cleaned(customer_id, **overrides):
    fields = {
        "customer_id": customer_id,
        "store_name": "Northside Market",
        "transaction_date": date(2024, 3, 14),
        "aisle": "Dairy",
        "product_name": "Whole Milk 1L",
        "quantity": 3,
        "unit_price": Decimal("1.49"),
        "total_amount": Decimal("4.47"),
        "discount_amount": Decimal("0.50"),
        "final_amount": Decimal("3.97"),
        "loyalty_points": 0,
    }
    fields.update(overrides)
    return CleanedTransaction(**fields)


def test_password_is_required():
    with pytest.raises(ValueError, match="password"):
        DatabaseConnectionPool(password=None)


def test_get_connection_requires_open_pool():
    pool = DatabaseConnectionPool(password="unused")
    with pytest.raises(RuntimeError):
        with pool.get_connection():
            pass


@pytest.mark.integration
def test_connection_pool_roundtrip(warehouse_pool):
    result = warehouse_pool.execute_query("SELECT 42 AS answer")
    assert result == [{"answer": 42}]


@pytest.mark.integration
def test_execute_batch_returns_count(warehouse_pool):
    warehouse_pool.execute_command("CREATE TABLE IF NOT EXISTS scratch (n INT)")
    try:
        inserted = warehouse_pool.execute_batch(
            "INSERT INTO scratch (n) VALUES (%s)", [(1,), (2,), (3,)]
        )
        assert inserted == 3
        assert warehouse_pool.execute_query("SELECT COUNT(*) AS n FROM scratch")[0]["n"] == 3
        assert warehouse_pool.execute_batch("INSERT INTO scratch (n) VALUES (%s)", []) == 0
    finally:
        warehouse_pool.execute_command("DROP TABLE scratch")


@pytest.mark.integration
def test_raw_loader_appends_verbatim(warehouse_pool):
    SchemaManager(warehouse_pool).ensure_audit_tables()
    loader = RawTransactionLoader(warehouse_pool)

    written = loader.load(
        [
            RawTransaction(customer_id=1, transaction_date="2024/03/14", loyalty_points=-5),
            RawTransaction(store_name=None, unit_price=Decimal("0.00")),
        ],
        run_id="run_raw",
    )

    rows = warehouse_pool.execute_query(
        "SELECT run_id, transaction_date, loyalty_points FROM grocery_raw ORDER BY raw_id"
    )
    assert written == 2
    assert rows[0] == {"run_id": "run_raw", "transaction_date": "2024/03/14", "loyalty_points": -5}
    assert rows[1]["transaction_date"] is None


@pytest.mark.integration
def test_cleaned_table_is_rebuilt_with_indexes(warehouse_pool):
    manager = SchemaManager(warehouse_pool)
    loader = CleanedTransactionLoader(warehouse_pool)

    manager.recreate_cleaned_table()
    loader.load([_cleaned(1), _cleaned(2)])
    manager.create_cleaned_indexes()
    assert loader.count() == 2

    manager.recreate_cleaned_table()
    loader.load([_cleaned(3)])
    manager.create_cleaned_indexes()

    assert loader.count() == 1
    assert set(CLEANED_INDEXES) <= set(manager.list_cleaned_indexes())


@pytest.mark.integration
def test_cleaned_table_rejects_negative_final_amount(warehouse_pool):
    SchemaManager(warehouse_pool).recreate_cleaned_table()

    with pytest.raises(psycopg.errors.CheckViolation):
        warehouse_pool.execute_command(
            "INSERT INTO grocery_cleaned (store_name, transaction_date, aisle, product_name, "
            "quantity, total_amount, discount_amount, final_amount) "
            "VALUES ('S', '2024-01-01', 'A', 'P', 1, 1.00, 0.00, -1.00)"
        )


@pytest.mark.integration
def test_quarantine_loader_and_stats(warehouse_pool):
    SchemaManager(warehouse_pool).ensure_audit_tables()
    loader = QuarantineLoader(warehouse_pool)

    records = [
        QuarantineRecord(
            staging_id=staging_id,
            run_id=run_id,
            raw_payload={"transaction_date": "2024/03/14", "unit_price": "1.49"},
            failed_rules=["transaction_date_format"],
            error_messages=["transaction_date: '2024/03/14' does not match DD-MM-YYYY"],
        )
        for staging_id, run_id in [(1, "run_a"), (2, "run_a"), (3, "run_b")]
    ]

    assert loader.load(records) == 3

    assert loader.get_quarantine_stats("run_a")["total_quarantined"] == 2
    overall = loader.get_quarantine_stats()
    assert overall["total_quarantined"] == 3
    assert overall["runs"] == 2

    row = warehouse_pool.execute_query(
        "SELECT raw_payload, failed_rules FROM grocery_quarantine WHERE staging_id = 3"
    )[0]
    assert row["raw_payload"]["unit_price"] == "1.49"
    assert row["failed_rules"] == ["transaction_date_format"]


@pytest.mark.integration
def test_staging_loader_keeps_flags_per_run(warehouse_pool):
    SchemaManager(warehouse_pool).ensure_audit_tables()
    loader = StagingTransactionLoader(warehouse_pool)

    def staged(staging_id, **flags):
        return StagingTransaction(
            staging_id=staging_id,
            customer_id=100 + staging_id,
            transaction_date=date(2024, 3, 14),
            quantity=1,
            unit_price=Decimal("2.00"),
            total_amount=Decimal("2.00"),
            discount_amount=Decimal("0.00"),
            final_amount=Decimal("2.00"),
            **flags,
        )

    loader.load([staged(1), staged(2, pricing_issue_flag=True), staged(3, discount_issue_flag=True)], "run_a")
    loader.load([staged(1, pricing_issue_flag=True)], "run_b")

    flagged = loader.get_flagged("run_a")

    assert [row["staging_id"] for row in flagged] == [2, 3]
    assert flagged[0]["pricing_issue_flag"] is True
    assert flagged[1]["discount_issue_flag"] is True
    assert flagged[0]["transaction_date"] == date(2024, 3, 14)
    assert [row["customer_id"] for row in loader.get_flagged("run_b")] == [101]
