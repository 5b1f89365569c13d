"""
Warehouse DDL for the grocery tables.

grocery_raw is append-only audit history. grocery_cleaned is rebuilt by
every run (write-once per run, read-only to reporting). grocery_quarantine
collects rows rejected during normalization, and grocery_staging keeps each
run's repaired working set with its quality flags for offline audit.
"""

from .connection import DatabaseConnectionPool

RAW_TABLE = "grocery_raw"
CLEANED_TABLE = "grocery_cleaned"
QUARANTINE_TABLE = "grocery_quarantine"
STAGING_TABLE = "grocery_staging"

RAW_TABLE_DDL = f"""
    CREATE TABLE IF NOT EXISTS {RAW_TABLE} (
        raw_id BIGSERIAL PRIMARY KEY,
        run_id VARCHAR(64) NOT NULL,
        customer_id INT,
        store_name VARCHAR(100),
        transaction_date VARCHAR(20),
        aisle VARCHAR(100),
        product_name VARCHAR(100),
        quantity INT,
        unit_price DECIMAL(10, 2),
        total_amount DECIMAL(10, 2),
        discount_amount DECIMAL(10, 2),
        final_amount DECIMAL(10, 2),
        loyalty_points INT,
        ingested_at TIMESTAMP NOT NULL DEFAULT NOW()
    )
"""

CLEANED_TABLE_DDL = f"""
    CREATE TABLE {CLEANED_TABLE} (
        customer_id INT,
        store_name VARCHAR(100) NOT NULL,
        transaction_date DATE NOT NULL,
        aisle VARCHAR(100) NOT NULL,
        product_name VARCHAR(100) NOT NULL,
        quantity INT NOT NULL,
        unit_price DECIMAL(10, 2),
        total_amount DECIMAL(10, 2) NOT NULL,
        discount_amount DECIMAL(10, 2) NOT NULL CHECK (discount_amount >= 0),
        final_amount DECIMAL(10, 2) NOT NULL CHECK (final_amount >= 0),
        loyalty_points INT CHECK (loyalty_points >= 0)
    )
"""

STAGING_TABLE_DDL = f"""
    CREATE TABLE IF NOT EXISTS {STAGING_TABLE} (
        run_id VARCHAR(64) NOT NULL,
        staging_id BIGINT NOT NULL,
        customer_id INT,
        store_name VARCHAR(100),
        transaction_date DATE,
        aisle VARCHAR(100),
        product_name VARCHAR(100),
        quantity INT,
        unit_price DECIMAL(10, 2),
        total_amount DECIMAL(10, 2),
        discount_amount DECIMAL(10, 2),
        final_amount DECIMAL(10, 2),
        loyalty_points INT,
        pricing_issue_flag BOOLEAN NOT NULL,
        discount_issue_flag BOOLEAN NOT NULL,
        PRIMARY KEY (run_id, staging_id)
    )
"""

QUARANTINE_TABLE_DDL = f"""
    CREATE TABLE IF NOT EXISTS {QUARANTINE_TABLE} (
        quarantine_id BIGSERIAL PRIMARY KEY,
        run_id VARCHAR(64) NOT NULL,
        staging_id BIGINT,
        raw_payload JSONB NOT NULL,
        failed_rules TEXT[] NOT NULL,
        error_messages TEXT[] NOT NULL,
        quarantined_at TIMESTAMP NOT NULL
    )
"""

# Secondary lookups used by the reporting queries
CLEANED_INDEXES = {
    "idx_cleaned_transaction_date": "transaction_date",
    "idx_cleaned_customer": "customer_id",
    "idx_cleaned_store": "store_name",
    "idx_cleaned_product": "product_name",
}


class SchemaManager:
    """
    Creates and resets the warehouse tables.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def ensure_audit_tables(self) -> None:
        """Create the append-only audit tables if they are missing."""
        self.pool.execute_command(RAW_TABLE_DDL)
        self.pool.execute_command(STAGING_TABLE_DDL)
        self.pool.execute_command(QUARANTINE_TABLE_DDL)

    def recreate_cleaned_table(self) -> None:
        """Drop and recreate grocery_cleaned, without indexes."""
        self.pool.execute_command(f"DROP TABLE IF EXISTS {CLEANED_TABLE}")
        self.pool.execute_command(CLEANED_TABLE_DDL)

    def create_cleaned_indexes(self) -> None:
        """
        Build the secondary indexes on grocery_cleaned.

        Called after the bulk load so rows are not indexed one at a time.
        """
        for index_name, column in CLEANED_INDEXES.items():
            self.pool.execute_command(
                f"CREATE INDEX IF NOT EXISTS {index_name} ON {CLEANED_TABLE} ({column})"
            )

    def list_cleaned_indexes(self) -> list[str]:
        rows = self.pool.execute_query(
            "SELECT indexname FROM pg_indexes WHERE tablename = %s ORDER BY indexname",
            (CLEANED_TABLE,)
        )
        return [row["indexname"] for row in rows]
