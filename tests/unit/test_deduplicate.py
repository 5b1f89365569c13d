"""
Unit tests for the ingest and deduplication stages.
"""

from decimal import Decimal

from pyspark.sql.types import DateType

from grocery_pipeline.batch.stages import (
    deduplicate,
    fill_missing_values,
    normalize_dates,
    publish,
    repair_amounts,
    to_staging,
)
from grocery_pipeline.core import columns as c


class TestToStaging:
    """Tests for to_staging()"""

    def test_adds_unique_increasing_ids(self, make_raw_df, transaction_row):
        raw = make_raw_df([transaction_row(customer_id=i) for i in range(6)])

        staging = to_staging(raw)
        rows = staging.collect()

        ids = [row[c.STAGING_ID] for row in rows]
        assert len(set(ids)) == 6
        assert ids == sorted(ids)
        assert [row[c.CUSTOMER_ID] for row in rows] == list(range(6))

    def test_flags_start_cleared(self, make_raw_df, transaction_row):
        staging = to_staging(make_raw_df([transaction_row()]))
        row = staging.first()

        assert row[c.PRICING_ISSUE_FLAG] is False
        assert row[c.DISCOUNT_ISSUE_FLAG] is False

    def test_raw_values_untouched(self, make_raw_df, transaction_row):
        staging = to_staging(make_raw_df([transaction_row(transaction_date="2024/03/14")]))
        row = staging.first()

        assert row[c.TRANSACTION_DATE] == "2024/03/14"
        assert row[c.TOTAL_AMOUNT] == Decimal("4.47")


class TestDeduplicate:
    """Tests for deduplicate()"""

    def test_keeps_highest_staging_id_for_same_date(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=5, unit_price=Decimal("1.49")),
            transaction_row(staging_id=9, unit_price=Decimal("1.59")),
        ])

        deduped, removed = deduplicate(df)
        rows = deduped.collect()

        assert removed == 1
        assert len(rows) == 1
        assert rows[0][c.STAGING_ID] == 9
        assert rows[0][c.UNIT_PRICE] == Decimal("1.59")

    def test_rows_differing_in_quantity_are_kept(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=1, quantity=3),
            transaction_row(staging_id=2, quantity=4),
        ])

        deduped, removed = deduplicate(df)

        assert removed == 0
        assert deduped.count() == 2

    def test_non_key_columns_do_not_separate_rows(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=1, aisle="Dairy", loyalty_points=1),
            transaction_row(staging_id=2, aisle="Chilled", loyalty_points=7),
        ])

        deduped, removed = deduplicate(df)

        assert removed == 1
        assert deduped.first()[c.AISLE] == "Chilled"

    def test_null_key_parts_group_together(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=1, customer_id=None),
            transaction_row(staging_id=2, customer_id=None),
            transaction_row(staging_id=3, customer_id=7),
        ])

        deduped, removed = deduplicate(df)

        assert removed == 1
        assert sorted(row[c.STAGING_ID] for row in deduped.collect()) == [2, 3]

    def test_is_idempotent(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=1),
            transaction_row(staging_id=2),
            transaction_row(staging_id=3, product_name="Butter"),
            transaction_row(staging_id=4, product_name="Butter"),
            transaction_row(staging_id=5, product_name="Eggs"),
        ])

        once, removed_first = deduplicate(df)
        twice, removed_second = deduplicate(once)

        assert removed_first == 2
        assert removed_second == 0
        assert sorted(r[c.STAGING_ID] for r in twice.collect()) == [2, 4, 5]

    def test_textual_date_variants_collapse_only_after_normalization(
        self, make_staging_df, transaction_row
    ):
        df = make_staging_df([
            transaction_row(staging_id=1, transaction_date="14-03-2024"),
            transaction_row(staging_id=2, transaction_date=" 14-03-2024"),
        ])

        _, removed_on_raw_text = deduplicate(df)

        normalized, _ = normalize_dates(df)
        assert normalized.schema[c.TRANSACTION_DATE].dataType == DateType()
        deduped, removed_on_dates = deduplicate(normalized)

        assert removed_on_raw_text == 0
        assert removed_on_dates == 1
        assert deduped.first()[c.STAGING_ID] == 2


class TestFilledKeys:
    """Tests for deduplication over filled-in key values"""

    def test_missing_and_zero_quantity_are_one_key(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=1, quantity=None, aisle="Dairy", loyalty_points=0),
            transaction_row(staging_id=2, quantity=0, aisle="Cheese", loyalty_points=3),
        ])

        deduped, removed = deduplicate(fill_missing_values(df))

        assert removed == 1
        row = deduped.first()
        assert row[c.STAGING_ID] == 2
        assert row[c.QUANTITY] == 0

    def test_missing_and_blank_store_are_one_key(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=1, store_name=None, aisle="Dairy"),
            transaction_row(staging_id=2, store_name="", aisle="Cheese"),
        ])

        deduped, removed = deduplicate(fill_missing_values(df))

        assert removed == 1
        assert deduped.first()[c.STORE_NAME] == c.UNKNOWN

    def test_filled_collisions_publish_cleanly(self, make_staging_df, transaction_row):
        df = make_staging_df([
            transaction_row(staging_id=1, quantity=None, aisle="Dairy"),
            transaction_row(staging_id=2, quantity=0, aisle="Cheese"),
            transaction_row(staging_id=3, store_name=None, loyalty_points=1),
            transaction_row(staging_id=4, store_name="", loyalty_points=2),
        ])
        normalized, _ = normalize_dates(df)

        deduped, removed = deduplicate(fill_missing_values(normalized))
        dataset, exact_duplicates = publish(repair_amounts(deduped))

        assert removed == 2
        assert exact_duplicates == 0
        assert dataset.count() == 2
