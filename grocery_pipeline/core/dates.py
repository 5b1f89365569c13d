"""
Transaction date parsing.

Raw feeds carry dates as DD-MM-YYYY text. Anything else is a FormatError;
callers decide whether that quarantines the row or halts the run.
"""

import re
from datetime import date, datetime
from typing import Any

from .errors import FormatError

DATE_PATTERN = re.compile(r"^\d{2}-\d{2}-\d{4}$")
DATE_FORMAT = "%d-%m-%Y"

# Equivalent pattern for Spark's to_date
SPARK_DATE_FORMAT = "dd-MM-yyyy"


def parse_transaction_date(value: Any, staging_id: int | None = None) -> date:
    """
    Parse a raw DD-MM-YYYY date string into a calendar date.

    Args:
        value: Raw transaction_date value
        staging_id: Optional synthetic identity, included in the error

    Returns:
        Parsed date

    Raises:
        FormatError: If the value is missing, off-pattern, or not a real date
    """
    if isinstance(value, date):
        return value

    if value is None or (isinstance(value, str) and not value.strip()):
        raise FormatError("transaction_date", value, "value is missing", staging_id)

    text = str(value).strip()
    if not DATE_PATTERN.match(text):
        raise FormatError(
            "transaction_date",
            value,
            f"'{text}' does not match DD-MM-YYYY",
            staging_id
        )

    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError as e:
        raise FormatError(
            "transaction_date",
            value,
            f"'{text}' is not a valid calendar date ({e})",
            staging_id
        ) from e


def is_valid_transaction_date(value: Any) -> bool:
    """Return True when parse_transaction_date would accept the value."""
    try:
        parse_transaction_date(value)
    except FormatError:
        return False
    return True
