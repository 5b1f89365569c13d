"""
Bulk loaders for the grocery warehouse tables.

Each loader takes validated models and writes them in a single transaction.
"""

import json

from grocery_pipeline.core.models import (
    CleanedTransaction,
    QuarantineRecord,
    RawTransaction,
    StagingTransaction,
)

from .connection import DatabaseConnectionPool
from .schema_mgmt import CLEANED_TABLE, QUARANTINE_TABLE, RAW_TABLE, STAGING_TABLE

_TRANSACTION_COLUMNS = (
    "customer_id, store_name, transaction_date, aisle, product_name, quantity, "
    "unit_price, total_amount, discount_amount, final_amount, loyalty_points"
)


def _transaction_values(record: RawTransaction | StagingTransaction | CleanedTransaction) -> tuple:
    return (
        record.customer_id,
        record.store_name,
        record.transaction_date,
        record.aisle,
        record.product_name,
        record.quantity,
        record.unit_price,
        record.total_amount,
        record.discount_amount,
        record.final_amount,
        record.loyalty_points,
    )


class RawTransactionLoader:
    """
    Appends raw rows to grocery_raw, tagged with the run that ingested them.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def load(self, records: list[RawTransaction], run_id: str) -> int:
        """
        Append raw records verbatim.

        Args:
            records: Raw transactions as read from the feed
            run_id: Identifier of the current run

        Returns:
            Number of rows written
        """
        query = f"""
            INSERT INTO {RAW_TABLE} (run_id, {_TRANSACTION_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        return self.pool.execute_batch(
            query,
            [(run_id, *_transaction_values(r)) for r in records]
        )


class StagingTransactionLoader:
    """
    Appends a run's repaired working set, flags included, to grocery_staging.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def load(self, records: list[StagingTransaction], run_id: str) -> int:
        query = f"""
            INSERT INTO {STAGING_TABLE} (
                run_id, staging_id, {_TRANSACTION_COLUMNS}, pricing_issue_flag, discount_issue_flag
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        return self.pool.execute_batch(
            query,
            [
                (run_id, r.staging_id, *_transaction_values(r), r.pricing_issue_flag, r.discount_issue_flag)
                for r in records
            ]
        )

    def get_flagged(self, run_id: str) -> list[dict]:
        """Rows of one run carrying a pricing or discount flag, by staging_id."""
        return self.pool.execute_query(
            f"""
                SELECT * FROM {STAGING_TABLE}
                WHERE run_id = %s AND (pricing_issue_flag OR discount_issue_flag)
                ORDER BY staging_id
            """,
            (run_id,)
        )


class CleanedTransactionLoader:
    """
    Inserts published records into grocery_cleaned.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def load(self, records: list[CleanedTransaction]) -> int:
        query = f"""
            INSERT INTO {CLEANED_TABLE} ({_TRANSACTION_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        return self.pool.execute_batch(query, [_transaction_values(r) for r in records])

    def count(self) -> int:
        result = self.pool.execute_query(f"SELECT COUNT(*) AS total FROM {CLEANED_TABLE}")
        return result[0]["total"]


class QuarantineLoader:
    """
    Handles writing rejected rows to grocery_quarantine.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def load(self, records: list[QuarantineRecord]) -> int:
        """
        Insert a batch of records into quarantine.

        Args:
            records: List of QuarantineRecord instances

        Returns:
            Number of records quarantined
        """
        query = f"""
            INSERT INTO {QUARANTINE_TABLE} (
                run_id, staging_id, raw_payload, failed_rules, error_messages, quarantined_at
            )
            VALUES (%s, %s, %s, %s, %s, %s)
        """

        data_tuples = [
            (
                r.run_id,
                r.staging_id,
                json.dumps(r.raw_payload),
                r.failed_rules,
                r.error_messages,
                r.quarantined_at
            )
            for r in records
        ]

        return self.pool.execute_batch(query, data_tuples)

    def get_quarantine_stats(self, run_id: str | None = None) -> dict:
        """
        Count quarantined rows, optionally for a single run.
        """
        if run_id:
            query = f"""
                SELECT COUNT(*) AS total_quarantined, COUNT(DISTINCT run_id) AS runs
                FROM {QUARANTINE_TABLE}
                WHERE run_id = %s
            """
            params = (run_id,)
        else:
            query = f"""
                SELECT COUNT(*) AS total_quarantined, COUNT(DISTINCT run_id) AS runs
                FROM {QUARANTINE_TABLE}
            """
            params = None

        result = self.pool.execute_query(query, params)
        return result[0] if result else {}
