"""Date helpers for receipt parsing."""

from datetime import date


def placeholder_receipt_date() -> date:
    """Return the date used when a receipt shows no readable date (today)."""
    return date.today()
